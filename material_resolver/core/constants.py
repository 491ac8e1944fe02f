"""Physical constants and sentinels for material resolution.

This module is the Single Source of Truth (SSOT) for all constants used when
converting material densities. Import from here rather than defining
constants locally.

Import Policy:
    from material_resolver.core.constants import AVOGADRO, BARN_CM2

DO NOT use: from material_resolver.core.constants import *
"""

# =============================================================================
# Fundamental Physical Constants
# =============================================================================

# Avogadro's number [mol⁻¹]
# Exact as defined by SI 2019 redefinition
AVOGADRO = 6.02214076e23

# One barn expressed in cm² (1 barn-cm = 1e-24 cm³)
BARN_CM2 = 1.0e-24

# Conversion factor from kg/m³ to g/cm³
KG_M3_TO_G_CM3 = 1.0e-3

# =============================================================================
# Sentinels
# =============================================================================

# Volume not known or not set [cm³]
VOLUME_UNSET = -1.0

# Temperature not given; material inherits the global default [K]
TEMPERATURE_UNSET = -1.0

# Runtime index assigned to cells that contain no material
VOID_MATERIAL = -1

# =============================================================================
# Numerical Tolerances
# =============================================================================

# Two temperatures closer than this are considered identical [K]
TEMPERATURE_MATCH_EPS = 1.0e-6
