'''
Standard catalog of unit families and types.

Ratios are the value of one reference unit (the first type of the family)
expressed in the type being defined: 1 m is 100 cm, so cm has ratio 100.
'''

import math

from .units import StdUnitId, TypeRegistry


BASE_UNITS = (
    StdUnitId.TIME,
    StdUnitId.MASS,
    StdUnitId.TEMP,
    StdUnitId.ANGLE,
    StdUnitId.LENGTH,
    StdUnitId.WEIGHT,
    StdUnitId.CAPACITY,
    StdUnitId.MONEY,
)

DERIVED_UNITS = (
    (StdUnitId.AREA, 'length^2'),
    (StdUnitId.VOLUME, 'length^3'),
    (StdUnitId.VELOCITY, 'length/time'),
    (StdUnitId.ACCELERATION, 'length/time^2'),
    (StdUnitId.PRESSURE, 'weight/length^2'),
)

TYPES = (
    (StdUnitId.LENGTH, 'm', 1),
    (StdUnitId.LENGTH, 'mm', 1000),
    (StdUnitId.LENGTH, 'cm', 100),
    (StdUnitId.LENGTH, 'km', 0.001),

    (StdUnitId.ANGLE, 'rad', 1),
    (StdUnitId.ANGLE, 'deg', 180 / math.pi),

    (StdUnitId.TIME, 'sec', 1),
    (StdUnitId.TIME, 'min', 1 / 60.0),
    (StdUnitId.TIME, 'hr', 1 / 3600.0),
    (StdUnitId.TIME, 'day', 1 / 86400.0),
    (StdUnitId.TIME, 'yr', 1 / 31536000.0),

    (StdUnitId.MASS, 'g', 1),
    (StdUnitId.MASS, 'kg', 0.001),
    (StdUnitId.MASS, 'mg', 1000),
    (StdUnitId.MASS, 'tonne', 0.000001),

    (StdUnitId.WEIGHT, 'lb', 1),
    (StdUnitId.WEIGHT, 'oz', 16.0),
    (StdUnitId.WEIGHT, 'ton', 1 / 2000.0),

    (StdUnitId.CAPACITY, 'L', 1),
    (StdUnitId.CAPACITY, 'mL', 1000),
)

# Affine scales: (family, symbol, ratio, delta)
AFFINE_TYPES = (
    (StdUnitId.TEMP, 'C', 1.0, 0.0),
    (StdUnitId.TEMP, 'F', 9.0 / 5.0, 32.0),
)

# Value of one unit in US dollars. Static; no rate feed.
FIAT = (
    ('USD', 1.00),
    ('CAD', 0.80),
    ('EUR', 1.16),
    ('GBP', 1.35),
    ('AUD', 0.74),
    ('JPY', 0.0088),
)

CRYPTO = (
    ('BTC', 66000.00),
    ('ETH', 5900.00),
    ('SOL', 244.00),
    ('ADA', 2.05),
    ('DOT', 53.00),
    ('LINK', 34.00),
)

DERIVED_TYPES = (
    (StdUnitId.VELOCITY, 'm/sec'),
    (StdUnitId.VELOCITY, 'km/hr'),
    (StdUnitId.AREA, 'm^2'),
    (StdUnitId.AREA, 'cm^2'),
)


def build_catalog(registry=None):
    '''
    Populate a registry with the standard catalog, returning it.
    '''
    if registry is None:
        registry = TypeRegistry()
    for family in BASE_UNITS:
        registry.define_base_unit(family)
    for family, signature in DERIVED_UNITS:
        registry.define_derived_unit(family, signature)
    for family, symbol, ratio in TYPES:
        registry.define_type(family, symbol, ratio)
    for family, symbol, ratio, delta in AFFINE_TYPES:
        registry.define_type(family, symbol, ratio, delta=delta)
    for symbol, usd in FIAT + CRYPTO:
        registry.define_type(StdUnitId.MONEY, symbol, 1 / usd)
    for family, signature in DERIVED_TYPES:
        registry.define_derived_type(int(family), signature)
    return registry


def check_catalog(registry):
    '''
    Return a list of inconsistencies in a registry; empty if there are none.
    '''
    problems = []
    for typedef in registry:
        unit = registry.unit_def(typedef.uid)
        if unit is None:
            problems.append('{}: no unit definition'.format(typedef.tag))
            continue
        if not typedef.code:
            problems.append('{}: empty type code'.format(typedef.tag))
            continue
        reduced = [(tag.uid, exp) for tag, exp in typedef.code]
        if registry.unit_signature(reduced) != \
                registry.unit_signature(unit.code):
            problems.append('{}: type code {!r} is not in family {}'.format(
                typedef.tag,
                registry.type_signature(typedef.code),
                registry.unit_symbol(typedef.uid)))
    return problems
