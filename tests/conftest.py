from pytest import Item, fixture

from typedrpn.algebra import TypeAlgebra
from typedrpn.catalog import build_catalog
from typedrpn.engine import Engine


def pytest_assertion_pass(item: Item,
                          lineno: int,
                          orig: str,
                          expl: str) -> None:
    '''
    Log every assertion, in case we later need to audit a run.

    Excessive in most cases.

    Use with pytest -rP.
    '''
    print('given', item.name + ':' + str(lineno), str(orig))  # no repr()!)
    print('actual', item.name + ':' + str(lineno),
          # Get rid of full-diff, -vv for full diff, etc.
          '\n'.join(str(expl).splitlines()[:-2]))


@fixture
def registry():
    '''
    Fresh standard catalog; tests may grow it.
    '''
    return build_catalog()


@fixture
def algebra(registry):
    return TypeAlgebra(registry)


@fixture
def engine(registry):
    return Engine(registry)


@fixture
def tag(registry):
    '''
    Look up a tag by symbol or signature.
    '''
    def lookup(symbol):
        found = registry.tag_for_symbol(symbol)
        if found is None:
            found = registry.tag_for_signature(symbol)
        assert found is not None, symbol
        return found
    return lookup
