from __future__ import annotations

from pipelines.common.tabular import decode_delimited, payroll_line_from_row


def test_decode_delimited_maps_rows_by_header() -> None:
    text = "nome,valor,categoria_contracheque\nAna,100,base\nBeto,200,outras\n"

    rows = decode_delimited(text)

    assert rows == [
        {"nome": "Ana", "valor": "100", "categoria_contracheque": "base"},
        {"nome": "Beto", "valor": "200", "categoria_contracheque": "outras"},
    ]


def test_decode_delimited_handles_quotes_and_escaped_quotes() -> None:
    text = 'nome,valor,cargo\n"Silva, Ana","33.924,92","Juiz ""Titular"""\n'

    rows = decode_delimited(text)

    assert rows == [{"nome": "Silva, Ana", "valor": "33.924,92", "cargo": 'Juiz "Titular"'}]


def test_decode_delimited_pads_short_rows_and_ignores_extra_fields() -> None:
    text = "a,b,c\n1\n1,2,3,4\n"

    rows = decode_delimited(text)

    assert rows == [{"a": "1", "b": "", "c": ""}, {"a": "1", "b": "2", "c": "3"}]


def test_decode_delimited_skips_blank_lines_and_crlf() -> None:
    text = "a,b\r\n1,2\r\n\r\n   \n3,4\r\n"

    rows = decode_delimited(text)

    assert rows == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]


def test_decode_delimited_keeps_stray_carriage_return_inside_a_line() -> None:
    rows = decode_delimited('nome,valor\nAna\rX,"1,00"\n')

    assert rows == [{"nome": "Ana\rX", "valor": "1,00"}]


def test_decode_delimited_toggles_quotes_in_the_middle_of_a_field() -> None:
    rows = decode_delimited('nome,valor,x\nab"c,d"e,1\n')

    assert rows == [{"nome": "abc,de", "valor": "1", "x": ""}]


def test_decode_delimited_unterminated_quote_runs_to_end_of_line() -> None:
    rows = decode_delimited('nome,valor\n"Ana,10\nBeto,20\n')

    assert rows == [{"nome": "Ana,10", "valor": ""}, {"nome": "Beto", "valor": "20"}]


def test_decode_delimited_header_only_or_empty_returns_no_rows() -> None:
    assert decode_delimited("") == []
    assert decode_delimited("a,b,c") == []
    assert decode_delimited("a,b,c\n") == []


def test_decode_delimited_trims_header_names_and_supports_other_delimiters() -> None:
    rows = decode_delimited(" nome ; valor \nAna;10\n", delimiter=";")

    assert rows == [{"nome": "Ana", "valor": "10"}]


def test_payroll_line_from_row_normalizes_case_and_missing_columns() -> None:
    line = payroll_line_from_row(
        {
            "nome": " Ana Souza ",
            "valor": "10,00",
            "categoria_contracheque": "OUTRAS",
            "desambiguacao_macro": "Aux-Alimentacao",
            "cargo": "Juiz",
        }
    )

    assert line.nome == "Ana Souza"
    assert line.valor == "10,00"
    assert line.categoria == "outras"
    assert line.macro == "aux-alimentacao"
    assert line.cargo == "Juiz"
    assert line.lotacao == ""
