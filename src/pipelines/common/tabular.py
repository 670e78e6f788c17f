from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


def _split_line(line: str, delimiter: str) -> list[str]:
    """Split one physical line into fields.

    A double quote toggles quoting anywhere in a field and `""` inside quotes is a
    literal quote. The delimiter only splits outside quotes. Quoted fields never
    span lines and an unterminated quote runs to the end of the line.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    idx = 0
    while idx < len(line):
        char = line[idx]
        if char == '"':
            if in_quotes and line[idx + 1 : idx + 2] == '"':
                current.append('"')
                idx += 1
            else:
                in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        idx += 1
    fields.append("".join(current))
    return fields


def decode_delimited(text: str, delimiter: str = ",") -> list[dict[str, str]]:
    """Decode delimited text whose first line is the header.

    Blank lines are skipped. Rows shorter than the header are padded with empty
    strings and fields beyond the header are ignored.
    """
    lines = text.split("\n")
    if len(lines) < 2:
        return []

    header = [name.strip() for name in _split_line(lines[0].rstrip("\r"), delimiter)]
    rows: list[dict[str, str]] = []
    for raw_line in lines[1:]:
        line = raw_line.strip()
        if not line:
            continue
        values = _split_line(line, delimiter)
        rows.append({name: values[idx] if idx < len(values) else "" for idx, name in enumerate(header)})
    return rows


@dataclass(frozen=True)
class PayrollLine:
    nome: str
    valor: str
    categoria: str
    macro: str
    cargo: str
    lotacao: str


def payroll_line_from_row(row: Mapping[str, str]) -> PayrollLine:
    """Map one decoded DadosJusBr contracheque row into a typed line."""

    def _field(name: str) -> str:
        return str(row.get(name) or "").strip()

    return PayrollLine(
        nome=_field("nome"),
        valor=_field("valor"),
        categoria=_field("categoria_contracheque").lower(),
        macro=_field("desambiguacao_macro").lower(),
        cargo=_field("cargo"),
        lotacao=_field("lotacao"),
    )
