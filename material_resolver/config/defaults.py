"""
Default Configuration Constants for Material Resolution

This module contains the fallback defaults used when defaults.yaml does not
provide a value. It is the Single Source of Truth (SSOT) for Python-side
defaults.

IMPORTANT Import Policies:
    1. DO NOT use: from material_resolver.config.defaults import *
    2. DO use explicit imports:
       from material_resolver.config.defaults import DEFAULT_TEMPERATURE
"""

# =============================================================================
# Temperature Defaults
# =============================================================================

# Global default temperature (K) for materials without one
# 293.6 K is the room temperature most evaluated libraries are processed at
DEFAULT_TEMPERATURE = 293.6

# How material temperatures are matched against tabulated data
DEFAULT_TEMPERATURE_POLICY = "exact"

# Maximum distance (K) to a tabulated temperature under the nearest policy
DEFAULT_TEMPERATURE_TOLERANCE = 10.0

# =============================================================================
# Composition Defaults
# =============================================================================

# Handling of a nuclide declared twice in one material
DEFAULT_DUPLICATE_POLICY = "reject"

# Relative tolerance of the total-vs-sum consistency check after finalize
DEFAULT_CONSISTENCY_RTOL = 1.0e-9
