import pytest
import yaml

from fccli.client.auth import Credentials
from fccli.config import Config, find_config_file
from fccli.exceptions import ConfigError, ValidationError
from fccli.namespaces import DEFAULT_PREFIXES
from fccli.session import Session


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / '.fccli'
    path.write_text(yaml.safe_dump({'HOST': 'http://fcrepo.example.com', 'USERNAME': 'jdoe', 'CWD': '/a'}))
    return path


def test_find_config_file(tmp_path):
    home = tmp_path / 'home'
    cwd = tmp_path / 'work'
    cwd.mkdir()
    assert find_config_file(cwd=cwd, home=home) == home / '.fccli'
    (cwd / '.fccli').touch()
    assert find_config_file(cwd=cwd, home=home) == cwd / '.fccli'
    assert find_config_file('other.yml', cwd=cwd, home=home).name == 'other.yml'


def test_missing_file_is_created(tmp_path):
    config = Config.load(tmp_path / '.fccli', env={})
    assert (tmp_path / '.fccli').exists()
    assert config.get('HOST') == 'http://localhost:8080'
    assert config.get('BASE_PATH') == '/rest'
    assert config.get('CWD') == '/'
    assert config.global_prefixes == DEFAULT_PREFIXES


def test_corrupt_file(tmp_path):
    path = tmp_path / '.fccli'
    path.write_text('HOST: [unclosed')
    with pytest.raises(ConfigError):
        Config.load(path, env={})


def test_not_a_mapping(tmp_path):
    path = tmp_path / '.fccli'
    path.write_text('- a\n- b\n')
    with pytest.raises(ConfigError):
        Config.load(path, env={})


def test_lookup_order(config_file):
    config = Config.load(config_file, env={'FCCLI_HOST': 'http://env.example.com'})
    assert config.get('HOST') == 'http://env.example.com'

    config = Config.load(
        config_file,
        overrides={'HOST': 'http://flag.example.com'},
        env={'FCCLI_HOST': 'http://env.example.com'},
    )
    assert config.get('HOST') == 'http://flag.example.com'

    config = Config.load(config_file, env={})
    assert config.get('HOST') == 'http://fcrepo.example.com'


def test_env_only_for_overridable_keys(config_file):
    config = Config.load(config_file, env={'FCCLI_CWD': '/b'})
    assert config.get('CWD') == '/a'


def test_file_values_are_substituted(tmp_path):
    path = tmp_path / '.fccli'
    path.write_text('PASSWORD: ${REPO_PASSWORD}\n')
    config = Config.load(path, env={'REPO_PASSWORD': 'secret'})
    assert config.get('PASSWORD') == 'secret'


def test_set_and_unset(config_file):
    config = Config.load(config_file, env={})
    config.set('base-path', '/fcrepo/rest')
    assert yaml.safe_load(config_file.read_text())['BASE_PATH'] == '/fcrepo/rest'

    config.unset('BASE_PATH', 'USERNAME')
    saved = yaml.safe_load(config_file.read_text())
    assert 'BASE_PATH' not in saved
    assert 'USERNAME' not in saved


def test_set_unknown_key(config_file):
    config = Config.load(config_file, env={})
    with pytest.raises(ValidationError):
        config.set('COLOR', 'blue')


def test_as_dict_masks_password(config_file):
    config = Config.load(config_file, overrides={'PASSWORD': 'secret'}, env={})
    values = config.as_dict()
    assert values['PASSWORD'] == '********'
    assert values['USERNAME'] == 'jdoe'


def test_credentials(config_file):
    config = Config.load(config_file, env={})
    assert config.credentials is None
    config = Config.load(config_file, overrides={'PASSWORD': 'secret'}, env={})
    assert config.credentials == Credentials('jdoe', 'secret')


def test_prefixes(config_file):
    config = Config.load(config_file, env={})
    config.add_prefix('ex', 'http://example.com/')
    assert config.global_prefixes == {**DEFAULT_PREFIXES, 'ex': 'http://example.com/'}

    reloaded = Config.load(config_file, env={})
    assert reloaded.global_prefixes['ex'] == 'http://example.com/'

    reloaded.remove_prefix('ex')
    assert 'ex' not in reloaded.global_prefixes
    with pytest.raises(ValidationError):
        reloaded.remove_prefix('ex')


def test_cwd_persisted_from_session(config_file):
    config = Config.load(config_file, env={})
    session = Session(cwd=config.get('CWD'))
    session.subscribe(config.on_session_event)

    session.set_cwd('/a/b/..//c')
    session.set_transaction_token('tx:123')

    saved = yaml.safe_load(config_file.read_text())
    assert saved['CWD'] == '/a/c'
    assert 'tx:123' not in config_file.read_text()


def test_on_login_stores_jwt(config_file):
    config = Config.load(config_file, env={})
    config.on_login('abc.def.ghi')
    assert Config.load(config_file, env={}).get('JWT') == 'abc.def.ghi'
