"""
Modelos de base de datos (ORM).

Solo se modelan las columnas que lee o escribe el motor de sincronización.
"""
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, JSON, String, Text
from sqlalchemy.sql import func

from folkets_storting.infrastructure.database.session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class RepresentantModel(Base):
    """
    Modelo de base de datos para representantes (stortingsrepresentanter).

    `stortinget_id` es la clave natural estable de la API upstream.
    """

    __tablename__ = "representanter"

    id = Column(String(36), primary_key=True, default=_new_id)
    stortinget_id = Column(String(64), nullable=False, unique=True, index=True)
    fornavn = Column(String(255), nullable=False)
    etternavn = Column(String(255), nullable=False)
    fodt = Column(Date, nullable=True)
    kjonn = Column(String(20), nullable=True)
    parti = Column(String(255), nullable=True)
    parti_forkortelse = Column(String(20), nullable=True, index=True)
    fylke = Column(String(100), nullable=True)
    epost = Column(String(255), nullable=True)
    komite = Column(String(255), nullable=True)
    bilde_url = Column(Text, nullable=True)
    er_aktiv = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Representant(stortinget_id={self.stortinget_id}, navn={self.fornavn} {self.etternavn})>"


class StortingetSakModel(Base):
    """
    Modelo de base de datos para saker (casos parlamentarios).

    Las columnas de votacion/argumentos las mantienen otros procesos;
    el sync solo escribe los metadatos del caso.
    """

    __tablename__ = "stortinget_saker"

    id = Column(String(36), primary_key=True, default=_new_id)
    stortinget_id = Column(String(64), nullable=False, unique=True, index=True)
    tittel = Column(Text, nullable=False)
    kort_tittel = Column(Text, nullable=True)
    beskrivelse = Column(Text, nullable=True)
    status = Column(String(50), nullable=True, index=True)
    dokumentgruppe = Column(String(100), nullable=True)
    tema = Column(String(255), nullable=True)
    komite_navn = Column(String(255), nullable=True)
    behandlet_sesjon = Column(String(20), nullable=True)
    sist_oppdatert_fra_stortinget = Column(Date, nullable=True)
    kategori = Column(String(50), nullable=True, index=True)
    er_viktig = Column(Boolean, default=False)
    er_aktiv = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<StortingetSak(stortinget_id={self.stortinget_id}, status={self.status})>"


class SystemSettingsModel(Base):
    """
    Configuraciones clave/valor del sistema.

    Aquí se persiste el watermark del sync (`stortinget_last_sync_ms`).
    """

    __tablename__ = "system_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SystemSetting(key={self.key}, value={self.value})>"
