"""Manifest layout profiles.

A layout profile carries everything the recovery engine needs to know about
one rendering style of a carrier's daily travel log: header labels, the
closed list of destination cities, the product names, the numeric format and
how the extractor must join text for it. Supporting a new layout means adding
a profile here, not touching the recovery code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .text_extractor import COMPACT_JOIN, SPACED_JOIN, JoinStrategy

CEARA_CITIES: tuple[str, ...] = (
    "MARANGUAPE",
    "FORTALEZA",
    "CAUCAIA",
    "EUSEBIO",
    "AQUIRAZ",
    "HORIZONTE",
    "PACAJUS",
    r"ITAV\.?",
    "SAO GONCALO",
    "PARACURU",
    "PARAIPABA",
    "TRAIRI",
    "ITAPIPOCA",
    "SOBRAL",
    "TIANGUA",
    "CRATEUS",
    "TAUA",
    "IGUATU",
    "JUAZEIRO",
    "CRATO",
    "BARBALHA",
    "BREJO SANTO",
    "RUSSAS",
    "LIMOEIRO",
    "ARACATI",
    "CASCAVEL",
    "BEBERIBE",
    "MORADA NOVA",
    "QUIXADA",
    "QUIXERAMOBIM",
    "CANINDE",
    "BATURITE",
    "REDENCAO",
    "ACARAPE",
    "PACATUBA",
    "GUAIUBA",
    "ITAITINGA",
    "MARACANAU",
    "CHOROZINHO",
)

FUEL_PRODUCTS: tuple[str, ...] = (
    "S10 COMUM",
    "GASOLINA",
    "DIESEL.*?",
    "ETANOL.*?",
)

PORTUGUESE_MONTHS: dict[str, int] = {
    "janeiro": 1,
    "fevereiro": 2,
    "marco": 3,
    "março": 3,
    "abril": 4,
    "maio": 5,
    "junho": 6,
    "julho": 7,
    "agosto": 8,
    "setembro": 9,
    "outubro": 10,
    "novembro": 11,
    "dezembro": 12,
}


@dataclass(frozen=True, eq=False)
class LayoutProfile:
    name: str
    description: str
    join: JoinStrategy
    row_style: Literal["delimited", "quoted"]
    # Marker separating the client name from its address inside one cell
    line_break: str
    driver_label: str = r"Motorista:"
    vehicle_label: str = r"Ve[íi]culo:"
    date_label: str = r"Previs[ãa]o in[íi]cio:"
    cities: tuple[str, ...] = CEARA_CITIES
    product_patterns: tuple[str, ...] = FUEL_PRODUCTS
    invoice_digits: int = 6
    thousands_separator: str = "."
    decimal_separator: str = ","
    layout_markers: tuple[str, ...] = ("Pedido", "Cliente")
    month_names: dict[str, int] | None = None
    route_name_prefix: str = "Rota PDF"
    default_driver_label: str = "Diário"

    @property
    def field_delimiter(self) -> str | None:
        return "|" if self.row_style == "delimited" else None


DIARIO_VIAGEM = LayoutProfile(
    name="diario_viagem",
    description="Daily travel log rendered as whitespace-separated columns (pipe-joined tokens).",
    join=SPACED_JOIN,
    row_style="delimited",
    line_break="|",
    month_names=PORTUGUESE_MONTHS,
)

DIARIO_VIAGEM_CSV = LayoutProfile(
    name="diario_viagem_csv",
    description="Daily travel log rendered as quoted, comma-separated tokens.",
    join=COMPACT_JOIN,
    row_style="quoted",
    line_break="\n",
    month_names=PORTUGUESE_MONTHS,
)

LAYOUTS: dict[str, LayoutProfile] = {
    DIARIO_VIAGEM.name: DIARIO_VIAGEM,
    DIARIO_VIAGEM_CSV.name: DIARIO_VIAGEM_CSV,
}


def get_layout(name: str) -> LayoutProfile:
    try:
        return LAYOUTS[name]
    except KeyError:
        raise KeyError(f"Unknown manifest layout '{name}'. Available: {', '.join(sorted(LAYOUTS))}") from None
