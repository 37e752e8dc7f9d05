"""
Mapeos API Stortinget -> tablas locales, por fuente.

Cada FieldMapping lista las rutas alternativas en orden de precedencia:
la API ha cambiado nombres y anidamiento entre versiones, p.ej. el partido
viene como `parti.navn` (anidado) o como `parti_navn` (plano).

Mantén las columnas alineadas con los modelos en
`infrastructure/database/models.py`.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Mapping, Optional
from urllib.parse import quote

from .normalizer import enum_text, to_date, to_text
from .sync_config import SyncSource, validate_sources
from .types import FieldMapping

PERSON_IMAGE_URL = (
    "https://data.stortinget.no/eksport/personbilde"
    "?personid={person_id}&storrelse=stort&erstatningsbilde=Ja"
)

KJONN = {1: "kvinne", 2: "mann"}

SAK_STATUS = {
    1: "varslet",
    2: "mottatt",
    3: "til_behandling",
    4: "behandlet",
    5: "trukket",
    6: "bortfalt",
}

DOKUMENTGRUPPE = {
    1: "proposisjon",
    2: "melding",
    3: "innstilling",
    4: "dokumentserien",
    5: "innberetning",
    6: "representantforslag",
    7: "grunnlovsforslag",
}


def person_image_url(person_id: str) -> str:
    """URL de la foto oficial, construida solo a partir del id (sin red)."""
    return PERSON_IMAGE_URL.format(person_id=quote(person_id, safe=""))


KORT_TITTEL_MAX = 100

_LOVENDRING_MARKERS = ("lovvedtak", "prop. l", "innst. l")
_LOV_MARKERS = ("loven", "lova", "lov (")
_BUDSJETT_MARKERS = (
    "statsbudsjettet",
    "budsjettet",
    "prop. 1 s",
    "innst. 2 s",
    "innst. 3 s",
    "innst. 4 s",
    "innst. 5 s",
    "skatter og avgifter",
    "tilleggsbevilgning",
)
_GRUNNLOV_MARKERS = ("grunnlovsforslag", "grunnlovsframlegg", "grunnloven")


def classify_sak(tittel: Optional[str]) -> tuple[str, bool]:
    """
    Clasifica un caso por palabras clave del título.

    Returns:
        (kategori, er_viktig). Los casos sin coincidencia son ("annet", False).
    """
    t = (tittel or "").lower()

    if (
        ("endringer i" in t and any(m in t for m in _LOV_MARKERS))
        or t.startswith("lov om")
        or any(m in t for m in _LOVENDRING_MARKERS)
    ):
        return "lovendring", True
    if any(m in t for m in _BUDSJETT_MARKERS):
        return "budsjett", True
    if any(m in t for m in _GRUNNLOV_MARKERS):
        return "grunnlovsendring", True
    return "annet", False


def kort_tittel_or_truncated(fields: Mapping[str, Any]) -> Optional[str]:
    """El título corto upstream o, si falta, los primeros 100 caracteres del título."""
    if fields.get("kort_tittel"):
        return fields["kort_tittel"]
    tittel = fields.get("tittel")
    return tittel[:KORT_TITTEL_MAX] if tittel else None


def representanter_source(min_interval: timedelta = timedelta(hours=24)) -> SyncSource:
    return SyncSource(
        name="representanter",
        endpoint="dagensrepresentanter?format=json",
        envelope_key="dagensrepresentanter_liste",
        target_table="representanter",
        field_mappings=(
            FieldMapping("stortinget_id", ("id", "person.id", "person_id"), to_text),
            FieldMapping("fornavn", ("fornavn", "person.fornavn"), to_text),
            FieldMapping("etternavn", ("etternavn", "person.etternavn"), to_text),
            FieldMapping("fodt", ("foedselsdato", "fodselsdato", "fodt"), to_date),
            FieldMapping("kjonn", ("kjoenn", "kjonn"), enum_text(KJONN)),
            FieldMapping("parti", ("parti.navn", "parti_navn"), to_text),
            FieldMapping("parti_forkortelse", ("parti.id", "parti_id", "parti_forkortelse"), to_text),
            FieldMapping("fylke", ("fylke.navn", "fylke_navn"), to_text),
            FieldMapping("epost", ("epost", "e_post"), to_text),
            FieldMapping("komite", ("komiteer_liste.0.navn", "komite.navn", "komite_navn"), to_text),
        ),
        derived_fields={
            "bilde_url": person_image_url,
            # El feed solo lista representantes con mandato vigente.
            "er_aktiv": lambda _person_id: True,
        },
        min_interval=min_interval,
    )


def saker_source(min_interval: timedelta = timedelta(hours=24)) -> SyncSource:
    return SyncSource(
        name="saker",
        endpoint="saker?format=json",
        envelope_key="saker_liste",
        target_table="stortinget_saker",
        field_mappings=(
            FieldMapping("stortinget_id", ("id", "sak_id"), to_text),
            FieldMapping("tittel", ("tittel", "korttittel"), to_text),
            FieldMapping("kort_tittel", ("korttittel", "kort_tittel"), to_text),
            FieldMapping("beskrivelse", ("innstilling_sammendrag", "kortvedtak"), to_text),
            FieldMapping("status", ("status",), enum_text(SAK_STATUS)),
            FieldMapping("dokumentgruppe", ("dokumentgruppe",), enum_text(DOKUMENTGRUPPE)),
            FieldMapping("tema", ("emne_liste.0.navn", "tema"), to_text),
            FieldMapping("komite_navn", ("komite.navn", "komite_navn"), to_text),
            FieldMapping("behandlet_sesjon", ("behandlet_sesjon_id", "sesjon_id"), to_text),
            FieldMapping(
                "sist_oppdatert_fra_stortinget",
                ("sist_oppdatert_dato", "sist_oppdatert"),
                to_date,
            ),
        ),
        computed_fields={
            "kort_tittel": kort_tittel_or_truncated,
            "kategori": lambda fields: classify_sak(fields.get("tittel"))[0],
            "er_viktig": lambda fields: classify_sak(fields.get("tittel"))[1],
        },
        min_interval=min_interval,
    )


def default_sources(min_interval: timedelta = timedelta(hours=24)) -> tuple[SyncSource, ...]:
    """Fuentes sincronizadas por la aplicación, en orden estable."""
    return validate_sources(
        [
            saker_source(min_interval),
            representanter_source(min_interval),
        ]
    )
