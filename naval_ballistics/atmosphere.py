"""
Atmosphere Model
================
Air density along the shell's flight path, as a function of geometric
altitude above the gun line.

Two models are available:

  - ``'isa'``      : International Standard Atmosphere (troposphere lapse
                     rate, isothermal lower stratosphere, simplified layer
                     above 20 km). This is the default.
  - ``'constant'`` : sea-level density everywhere. Cheaper and simpler, but
                     it overstates drag near the apex of long-range shots, so
                     long-range impact angles and flight times drift from the
                     in-game values.

Reference: U.S. Standard Atmosphere, 1976 (NASA-TM-X-74335)
"""

import math

import numpy as np


# ── ISA Constants ──────────────────────────────────────────────────────────
SEA_LEVEL_TEMP       = 288.15      # K  (15 °C)
SEA_LEVEL_PRESSURE   = 101325.0    # Pa
SEA_LEVEL_DENSITY    = 1.225       # kg/m³
LAPSE_RATE_TROPO     = -0.0065     # K/m  (troposphere)
TROPOPAUSE_ALT       = 11000.0     # m
TROPOPAUSE_TEMP      = 216.65      # K  (-56.5 °C)
STANDARD_GRAVITY     = 9.80665     # m/s² (barometric formula only)
MOLAR_MASS_AIR       = 0.0289644   # kg/mol
GAS_CONSTANT         = 8.31447     # J/(mol·K)
R_SPECIFIC           = 287.058     # J/(kg·K)  specific gas constant for air

ATMOSPHERE_MODELS = ('isa', 'constant')

_TROPO_EXPONENT = STANDARD_GRAVITY * MOLAR_MASS_AIR / (GAS_CONSTANT * abs(LAPSE_RATE_TROPO))
_TROPOPAUSE_PRESSURE = SEA_LEVEL_PRESSURE * (TROPOPAUSE_TEMP / SEA_LEVEL_TEMP) ** _TROPO_EXPONENT
_STRATO_SCALE = STANDARD_GRAVITY * MOLAR_MASS_AIR / (GAS_CONSTANT * TROPOPAUSE_TEMP)
_PRESSURE_20KM = _TROPOPAUSE_PRESSURE * math.exp(-_STRATO_SCALE * (20000.0 - TROPOPAUSE_ALT))
_UPPER_LAPSE = 0.001  # K/m
_UPPER_EXPONENT = STANDARD_GRAVITY * MOLAR_MASS_AIR / (GAS_CONSTANT * _UPPER_LAPSE)


def isa_temperature(altitude: float) -> float:
    """
    Temperature at a given geometric altitude (m).

    - Troposphere (0–11 km): linear lapse at −6.5 °C/km
    - Stratosphere (11–20 km): isothermal at 216.65 K
    - Above 20 km: +1 °C/km (simplified)
    """
    altitude = max(altitude, 0.0)
    if altitude <= TROPOPAUSE_ALT:
        return SEA_LEVEL_TEMP + LAPSE_RATE_TROPO * altitude
    elif altitude <= 20000.0:
        return TROPOPAUSE_TEMP
    return TROPOPAUSE_TEMP + _UPPER_LAPSE * (altitude - 20000.0)


def isa_pressure(altitude: float) -> float:
    """
    Atmospheric pressure (Pa) at a given geometric altitude (m).
    Uses barometric formula appropriate for each layer.
    """
    altitude = max(altitude, 0.0)
    if altitude <= TROPOPAUSE_ALT:
        T = isa_temperature(altitude)
        return SEA_LEVEL_PRESSURE * (T / SEA_LEVEL_TEMP) ** _TROPO_EXPONENT
    elif altitude <= 20000.0:
        return _TROPOPAUSE_PRESSURE * math.exp(-_STRATO_SCALE * (altitude - TROPOPAUSE_ALT))
    T_h = isa_temperature(altitude)
    return _PRESSURE_20KM * (T_h / TROPOPAUSE_TEMP) ** (-_UPPER_EXPONENT)


def isa_density(altitude: float) -> float:
    """
    Air density (kg/m³) from ideal gas law: ρ = P / (R_specific × T).
    """
    return isa_pressure(altitude) / (R_SPECIFIC * isa_temperature(altitude))


def constant_density(altitude: float) -> float:
    """Sea-level density regardless of altitude."""
    return SEA_LEVEL_DENSITY


def density_function(model: str = 'isa'):
    """Return the density callable ``rho(altitude)`` for a model name."""
    if model == 'isa':
        return isa_density
    if model == 'constant':
        return constant_density
    raise ValueError(
        f"Unknown atmosphere model '{model}'. "
        f"Available: {list(ATMOSPHERE_MODELS)}"
    )


def density_profile(alt_array: np.ndarray, model: str = 'isa') -> np.ndarray:
    """Vectorized density lookup for plotting."""
    rho = density_function(model)
    return np.array([rho(h) for h in alt_array])
