import hypothesis
import pytest

from tests.utils import exec_source, working_directory

############
# PATCHING #
############


# disable hypothesis deadline globally
hypothesis.settings.register_profile("ci", deadline=None)
hypothesis.settings.load_profile("ci")


def pytest_configure(config):
    config.addinivalue_line("markers", "fuzzing: Run Hypothesis fuzz test suite")


@pytest.fixture(scope="session")
def get_function():
    """
    Expand a block under a policy, execute it and return one of the
    functions it defines.
    """

    def fn(source_code, policy=None, name="foo", settings=None):
        namespace = exec_source(source_code, policy=policy, settings=settings)
        return namespace[name]

    return fn


@pytest.fixture
def make_file(tmp_path):
    def fn(filename, source_code):
        path = tmp_path / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w") as f:
            f.write(source_code)
        return path

    return fn


@pytest.fixture
def chdir_tmp_path(tmp_path):
    # this is useful for when you want imports to have relpaths
    with working_directory(tmp_path):
        yield
