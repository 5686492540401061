"""Order normalizer configuration: all values come from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class NormalizerConfig:
    """Immutable configuration loaded once at import."""

    # Keyword table (kind -> locale -> terms); empty path means the bundled table
    keywords_path: str = field(default_factory=lambda: os.getenv("ORDER_KEYWORDS_PATH", ""))
    keyword_locales: str = field(default_factory=lambda: os.getenv("ORDER_KEYWORD_LOCALES", ""))

    # Money
    currency_decimals: int = field(default_factory=lambda: _int_env("CURRENCY_DECIMALS", 2))

    # Display names for synthesized fee entries
    tip_label: str = field(default_factory=lambda: os.getenv("TIP_LABEL", "Tip"))
    delivery_fee_label: str = field(default_factory=lambda: os.getenv("DELIVERY_FEE_LABEL", "Delivery Fee"))

    # Batch normalization
    max_workers: int = field(default_factory=lambda: _int_env("NORMALIZER_MAX_WORKERS", 4))

    # Observability
    otel_endpoint: str = field(default_factory=lambda: os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", ""))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def minor_unit(self) -> Decimal:
        """Quantum for one currency minor unit, e.g. Decimal('0.01')."""
        return Decimal(1).scaleb(-max(0, self.currency_decimals))

    @property
    def locales(self) -> tuple[str, ...]:
        """Enabled keyword locales; empty tuple means every locale in the table."""
        return tuple(
            part.strip().lower() for part in self.keyword_locales.split(",") if part.strip()
        )


config = NormalizerConfig()
