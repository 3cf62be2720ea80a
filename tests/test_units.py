'''
Type registry and catalog tests
'''

from typedrpn.catalog import check_catalog
from typedrpn.units import (StdUnitId, TypeRegistry, TypeTag, TAG_NONE,
                            TAG_UNTYPED, USER_UNIT_BASE, unit_name)


def test_catalog_consistent(registry):
    assert check_catalog(registry) == []


def test_type_ids_unique(registry):
    tids = [typedef.tid for typedef in registry]
    assert len(tids) == len(set(tids))
    assert 0 not in tids


def test_symbol_lookup(registry):
    km = registry.tag_for_symbol('km')
    assert km.uid == StdUnitId.LENGTH
    assert registry.type_def(km).ratio == 0.001
    assert registry.symbol(km) == 'km'
    assert registry.tag_for_symbol('parsec') is None


def test_base_type_indexed_by_signature(registry):
    assert registry.tag_for_signature('km') == registry.tag_for_symbol('km')


def test_sentinels(registry):
    assert registry.symbol(TAG_UNTYPED) is None
    assert registry.symbol(TAG_NONE) is None
    assert registry.type_def(TAG_NONE) is None
    assert registry.type_code(TAG_UNTYPED) == []
    assert registry.type_code(TAG_NONE) is None


def test_type_def_checks_family(registry):
    km = registry.tag_for_symbol('km')
    assert registry.type_def(TypeTag(StdUnitId.TIME, km.tid)) is None


def test_define_type_without_unit(caplog):
    r = TypeRegistry()
    assert r.define_type(StdUnitId.LENGTH, 'm', 1) is None
    assert 'Cannot define type m' in caplog.text
    assert list(r) == []


def test_derived_units(registry):
    assert registry.unit_for_signature('length/time').uid == \
        StdUnitId.VELOCITY
    assert registry.unit_for_signature('length^2').uid == StdUnitId.AREA
    assert registry.unit_signature(registry.unit_def(StdUnitId.PRESSURE)
                                   .code) == 'weight/length^2'


def test_derived_type(registry):
    tag = registry.tag_for_signature('m/sec')
    assert tag.uid == StdUnitId.VELOCITY
    assert registry.symbol(tag) == 'm/sec'
    assert registry.type_def(tag).ratio == 1.0


def test_user_units(registry):
    first = registry.define_user_unit('length\N{MIDDLE DOT}mass')
    second = registry.define_user_unit('time\N{MIDDLE DOT}mass')
    assert first.uid == USER_UNIT_BASE
    assert second.uid == USER_UNIT_BASE + 1
    assert unit_name(first.uid) == 'User0'
    assert TypeTag(first.uid, 1).is_type(StdUnitId.USER)
    assert not TypeTag(StdUnitId.LENGTH, 1).is_type(StdUnitId.USER)


def test_affine(registry):
    assert registry.is_affine(StdUnitId.TEMP)
    assert not registry.is_affine(StdUnitId.LENGTH)


def test_family_types(registry):
    symbols = [registry.symbol(tag)
               for tag in registry.family_types(StdUnitId.ANGLE)]
    assert symbols == ['rad', 'deg']


def test_tag_str():
    assert str(TypeTag(StdUnitId.LENGTH, 2)) == '{length:2}'
    assert str(TypeTag(USER_UNIT_BASE + 3, 7)) == '{User3:7}'
