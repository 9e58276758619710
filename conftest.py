import pytest

from streamey._cache import DEFAULT_TEMPLATE_CACHE


def pytest_addoption(parser):
    parser.addoption(
        '--run-benchmarks',
        action='store_true', default=False, help='Run benchmarks')
    parser.addoption(
        '--run-integr8',
        action='store_true', default=False, help='Run integration tests')


def pytest_collection_modifyitems(config, items):
    # We use this to re-order items inplace so that unittests are run first,
    # then integr8
    items.sort(key=_sort_by_test_phase)

    if config.getoption('--run-benchmarks'):
        return
    skip_benchmark = pytest.mark.skip(
        reason='Needs --run-benchmarks to run benchmarks')

    for item in items:
        if 'benchmark' in item.keywords:
            item.add_marker(skip_benchmark)


collect_ignore_glob = []


_TEST_PHASES: dict[None | str, int] = {
    None: 0,
    'integr8': 1,
}


def pytest_configure(config):
    config.addinivalue_line(
        'markers', 'benchmark: Mark test to run only during benchmarking')
    if not config.getoption('--run-integr8'):
        collect_ignore_glob.append('*.integr8.test.py')


def _sort_by_test_phase(item: pytest.Item):
    """Use this as a sorting key divide the collected tests up into
    phases, based on _TEST_PHASES. The goal here is to run the tests
    starting with the fastest phase first, and then proceed onto the
    slower phases.
    """
    test_fs_path = item.path
    if test_fs_path is None:
        return _TEST_PHASES[None]

    suffixes = {suffix.lstrip('.') for suffix in test_fs_path.suffixes}
    maybe_phase_name = suffixes.intersection(_TEST_PHASES)

    if maybe_phase_name:
        try:
            phase_name, = maybe_phase_name
        except ValueError as exc:
            exc.add_note(
                'Apparently you have a test file with multiple phases?')
            raise exc

        return _TEST_PHASES[phase_name]

    else:
        return _TEST_PHASES[None]


@pytest.fixture(
    params=[
        pytest.param('asyncio', id='asyncio'),
        pytest.param('trio', id='trio')])
def anyio_backend(request):
    """Every async test runs against both of the backends anyio
    supports.
    """
    return request.param


@pytest.fixture(autouse=True, scope='function')
def clear_template_cache():
    """Makes sure that all test functions start with an empty template
    cache, so that cache assertions aren't affected by test ordering.
    """
    DEFAULT_TEMPLATE_CACHE.clear()
    yield
    DEFAULT_TEMPLATE_CACHE.clear()
