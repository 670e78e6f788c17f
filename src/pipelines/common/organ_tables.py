from __future__ import annotations

# Order matters: the sync walks organs in this order, batch by batch.
TRIBUNAIS_DE_JUSTICA: tuple[str, ...] = (
    "tjac", "tjal", "tjam", "tjap", "tjba", "tjce", "tjdft", "tjes",
    "tjgo", "tjma", "tjmg", "tjms", "tjmt", "tjpa", "tjpb", "tjpe",
    "tjpi", "tjpr", "tjrj", "tjrn", "tjro", "tjrr", "tjrs", "tjsc",
    "tjse", "tjsp", "tjto",
)
MINISTERIOS_PUBLICOS_ESTADUAIS: tuple[str, ...] = (
    "mppb", "mpac", "mpal", "mpam", "mpap", "mpba", "mpce",
    "mpes", "mpgo", "mpma", "mpmg", "mpms", "mpmt", "mppa", "mppe",
    "mppi", "mppr", "mprj", "mprn", "mpro", "mprr", "mprs", "mpsc",
    "mpse", "mpsp", "mpto",
)
FEDERAL_MP_IDS: tuple[str, ...] = ("mpf", "mpt", "mpm", "mpdft")

ORGAOS: tuple[str, ...] = TRIBUNAIS_DE_JUSTICA + MINISTERIOS_PUBLICOS_ESTADUAIS + FEDERAL_MP_IDS

FEDERAL_MP_CODES: dict[str, str] = {
    "mpf": "MPF",
    "mpt": "MPT",
    "mpm": "MPM",
    "mpdft": "MPDFT",
}

# Procuradorias Regionais da Republica -> UF da sede.
PRR_REGIAO_ESTADO: dict[str, str] = {
    "1": "DF", "2": "RJ", "3": "SP", "4": "RS", "5": "PE", "6": "MG",
}

# Regioes da Justica do Trabalho -> UF da sede do TRT.
TRT_REGIAO_ESTADO: dict[str, str] = {
    "1": "RJ", "2": "SP", "3": "MG", "4": "RS", "5": "BA",
    "6": "PE", "7": "CE", "8": "PA", "9": "PR", "10": "DF",
    "11": "AM", "12": "SC", "13": "PB", "14": "RO", "15": "SP",
    "16": "MA", "17": "ES", "18": "GO", "19": "AL", "20": "SE",
    "21": "RN", "22": "PI", "23": "MT", "24": "MS",
}

# Procuradorias da Republica nos Municipios, as abbreviated in the MPF lotacao field.
PRM_CIDADE_ESTADO: dict[str, str] = {
    "ALAGOINHAS": "BA", "ALTAMIRA-PA": "PA", "ANAPOLIS": "GO",
    "ANGRA REIS": "RJ", "ARACATUBA": "SP", "ARAGUAINA": "TO",
    "ARAPIRACA": "AL", "ARARAQUARA": "SP", "ASSIS": "SP",
    "B.DO GARÇAS": "MT", "B.GONCALVES": "RS", "BACABAL": "MA",
    "BAGÉ": "RS", "BARREIRAS": "BA", "BAURU": "SP",
    "BLUMENAU": "SC", "BRAGANÇA": "PA", "C. MOURAO": "PR",
    "C.GRANDE": "MS", "CACERES": "MT", "CAMPINAS": "SP",
    "CAMPOS": "RJ", "CARAGUATA": "SP", "CARUARU": "PE",
    "CASCAVEL": "PR", "CAXIAS": "MA", "CAXIAS SUL": "RS",
    "CAÇADOR": "SC", "CHAPECO": "SC", "CORRENTE": "PI",
    "CORUMBA": "MS", "CRICIUMA": "SC", "CRUZ ALTA": "RS",
    "DIVINÓPOLIS": "MG", "DOURADOS": "MS", "ERECHIM/P.M": "RS",
    "EUNAPOLIS": "BA", "F.BELTRAO": "PR", "FEIRA": "BA",
    "FLORIANO": "PI", "FOZ": "PR", "FRANCA": "SP",
    "GARANHUNS": "PE", "GOV VALADAR": "MG", "GUANAMBI": "BA",
    "GUARULHOS": "SP", "ILHEUS": "BA", "IMPERATRIZ": "MA",
    "IRECÊ": "BA", "ITAJAI": "SC", "ITAPERUNA": "RJ",
    "ITAPEVA": "SP", "J. NORTE": "CE", "JALES": "SP",
    "JAU": "SP", "JEQUIE": "BA", "JI PARANÁ": "RO",
    "JOINVILLE": "SC", "JUIZ FORA": "MG", "JUNDIAI": "SP",
    "LAGES": "SC", "LIMOEIRO": "PE", "LONDRINA": "PR",
    "LUZIANIA": "GO", "M. CLAROS": "MG", "MACAE": "RJ",
    "MARABA": "PA", "MARINGA": "PR", "MARÍLIA": "SP",
    "MOSSORO": "RN", "N.FRIBURGO": "RJ", "N.HAMBURGO": "RS",
    "NITEROI": "RJ", "OURINHOS": "SP", "P.FUNDO": "RS",
    "P.GROSSA": "PR", "P.PRUDENTE": "SP", "PARAGOMINAS": "PA",
    "PARNAIBA": "PI", "PATO BCO": "PR", "PELOTAS-RS": "RS",
    "PETROLINA": "PE", "PETROPOLIS": "RJ", "PICOS-PI": "PI",
    "PIRACICABA": "SP", "R.GRANDE": "RS", "R.PRETO": "SP",
    "REDENÇÃO": "PA", "RESENDE-RJ": "RJ", "RONDONOPOLI": "MT",
    "S. TALHADA": "PE", "S.ANGELO": "RS", "S.BERNARDO": "SP",
    "S.CARLOS": "SP", "S.GONÇALO": "RJ", "S.J. MERITI": "RJ",
    "S.J.CAMP": "SP", "S.J.DEL REI": "MG", "S.J.R.PRETO": "SP",
    "S.LIVRAMENT": "RS", "S.MARIA": "RS", "S.MIGUEL": "RN",
    "S.P.ALDEIA": "RJ", "S.R.NONATO": "PI", "SANTA ROSA": "RS",
    "SANTAREM": "PA", "SANTOS": "SP", "SETE LAGOAS": "MG",
    "SINOP": "MT", "SOBRAL": "CE", "SOROCABA": "SP",
    "SOUSA": "PB", "STA CRUZ SU": "RS", "TABATINGA": "AM",
    "TAUBATE": "SP", "TEFÉ": "AM", "TRES LAGOAS": "MS",
    "TUBARAO": "SC", "TUCURUI": "PA", "UBERABA": "MG",
    "UBERLANDIA": "MG", "UMUARAMA": "PR", "URUGUAIANA": "RS",
    "V.REDONDA": "RJ", "VARGINHA": "MG", "VIT. CONQUI": "BA",
}

ESTADOS: dict[str, str] = {
    "AC": "Acre",
    "AL": "Alagoas",
    "AM": "Amazonas",
    "AP": "Amapá",
    "BA": "Bahia",
    "CE": "Ceará",
    "DF": "Distrito Federal",
    "ES": "Espírito Santo",
    "GO": "Goiás",
    "MA": "Maranhão",
    "MG": "Minas Gerais",
    "MS": "Mato Grosso do Sul",
    "MT": "Mato Grosso",
    "PA": "Pará",
    "PB": "Paraíba",
    "PE": "Pernambuco",
    "PI": "Piauí",
    "PR": "Paraná",
    "RJ": "Rio de Janeiro",
    "RN": "Rio Grande do Norte",
    "RO": "Rondônia",
    "RR": "Roraima",
    "RS": "Rio Grande do Sul",
    "SC": "Santa Catarina",
    "SE": "Sergipe",
    "SP": "São Paulo",
    "TO": "Tocantins",
}

CARGOS: tuple[str, ...] = (
    "Juiz(a)",
    "Desembargador(a)",
    "Ministro(a)",
    "Promotor(a)",
    "Procurador(a)",
    "Defensor(a) Público(a)",
)
