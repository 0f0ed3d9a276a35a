"""
frugen Configuration
====================

Defaults used when building FRU images. Configuration can come from:
- Default values (defined here)
- Environment variables
- Command-line options (which override both)
"""

from dataclasses import dataclass
import os

from frugen.fru.fields import EncodingPolicy
from frugen.fru.records import ChassisType, Language


TRUE_VALUES = ("1", "yes", "true", "on")


@dataclass
class FruConfig:
    """
    Build defaults for FRU images.

    Attributes:
        policy: Field encoding policy (AUTO picks the most compact encoding,
            TEXT forces plain ASCII)
        language: Language code for the board and product areas
        chassis_type: SMBIOS chassis type for the chassis area
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # ENCODING
    # ═══════════════════════════════════════════════════════════════════════════

    policy: EncodingPolicy = EncodingPolicy.AUTO

    # ═══════════════════════════════════════════════════════════════════════════
    # AREA DEFAULTS
    # ═══════════════════════════════════════════════════════════════════════════

    language: int = Language.ENGLISH
    chassis_type: int = ChassisType.UNKNOWN

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "FruConfig":
        """
        Create FruConfig from environment variables.

        Environment variables (all optional):
            FRUGEN_ASCII: Force plain ASCII text fields ("1", "yes", "true", "on")
            FRUGEN_LANGUAGE: Language code (integer, 0x prefix for hex)
            FRUGEN_CHASSIS_TYPE: Chassis type (integer, 0x prefix for hex)

        Returns:
            FruConfig with values from environment variables
        """
        config = cls()

        if ascii_only := os.environ.get("FRUGEN_ASCII"):
            if ascii_only.lower() in TRUE_VALUES:
                config.policy = EncodingPolicy.TEXT

        if language := os.environ.get("FRUGEN_LANGUAGE"):
            try:
                config.language = int(language, 0)
            except ValueError:
                pass  # Ignore invalid values

        if chassis_type := os.environ.get("FRUGEN_CHASSIS_TYPE"):
            try:
                config.chassis_type = int(chassis_type, 0)
            except ValueError:
                pass

        return config
