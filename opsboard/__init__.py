"""Operations dashboard backend: incident tracking and bulk incident import."""

__version__ = "0.3.0"
