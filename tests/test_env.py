"""Tests for ui_inventory.core.env — .env loading, walk-up logic and Settings."""

import os
from pathlib import Path

import pytest
from ui_inventory.core.env import Settings, _find_dotenv, _parse_dotenv, load_env


class TestParseDotenv:
    def test_simple_key_value(self, tmp_path: Path) -> None:
        f = tmp_path / '.env'
        f.write_text('UI_INVENTORY_FORMAT=image/png\n')
        assert _parse_dotenv(f) == {'UI_INVENTORY_FORMAT': 'image/png'}

    def test_quoted_values(self, tmp_path: Path) -> None:
        f = tmp_path / '.env'
        f.write_text('KEY="hello world"\nKEY2=\'single\'\n')
        assert _parse_dotenv(f) == {'KEY': 'hello world', 'KEY2': 'single'}

    def test_comments_and_blank_lines_ignored(self, tmp_path: Path) -> None:
        f = tmp_path / '.env'
        f.write_text('# comment\n\nFOO=bar\n\n')
        assert _parse_dotenv(f) == {'FOO': 'bar'}

    def test_line_without_equals_ignored(self, tmp_path: Path) -> None:
        f = tmp_path / '.env'
        f.write_text('NOEQUALS\nFOO=bar\n')
        assert _parse_dotenv(f) == {'FOO': 'bar'}

    def test_export_prefix(self, tmp_path: Path) -> None:
        f = tmp_path / '.env'
        f.write_text('export UI_INVENTORY_MAX_DIM=800\n')
        assert _parse_dotenv(f) == {'UI_INVENTORY_MAX_DIM': '800'}


class TestFindDotenv:
    def test_finds_in_parent(self, tmp_path: Path) -> None:
        subdir = tmp_path / 'sub'
        subdir.mkdir()
        dotenv = tmp_path / '.env'
        dotenv.write_text('X=1\n')
        assert _find_dotenv(subdir) == dotenv

    def test_stops_at_git_dir(self, tmp_path: Path) -> None:
        repo = tmp_path / 'repo'
        (repo / '.git').mkdir(parents=True)
        (repo / 'src').mkdir()
        (tmp_path / '.env').write_text('X=1\n')
        assert _find_dotenv(repo / 'src') is None

    def test_stops_at_git_file(self, tmp_path: Path) -> None:
        repo = tmp_path / 'repo'
        repo.mkdir()
        (repo / '.git').write_text('gitdir: ../somewhere\n')
        (repo / 'src').mkdir()
        (tmp_path / '.env').write_text('X=1\n')
        assert _find_dotenv(repo / 'src') is None


class TestLoadEnv:
    def test_sets_missing_vars(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv('UI_INVENTORY_TEST_KEY', raising=False)
        (tmp_path / '.env').write_text('UI_INVENTORY_TEST_KEY=fromfile\n')
        monkeypatch.chdir(tmp_path)
        assert load_env() == tmp_path / '.env'
        assert os.environ.get('UI_INVENTORY_TEST_KEY') == 'fromfile'

    def test_does_not_overwrite_existing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('UI_INVENTORY_TEST_KEY2', 'original')
        (tmp_path / '.env').write_text('UI_INVENTORY_TEST_KEY2=fromfile\n')
        monkeypatch.chdir(tmp_path)
        load_env()
        assert os.environ.get('UI_INVENTORY_TEST_KEY2') == 'original'

    def test_explicit_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv('UI_INVENTORY_TEST_KEY3', raising=False)
        dotenv = tmp_path / 'custom.env'
        dotenv.write_text('UI_INVENTORY_TEST_KEY3=custom\n')
        load_env(env_file=str(dotenv))
        assert os.environ.get('UI_INVENTORY_TEST_KEY3') == 'custom'

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        assert load_env(env_file=str(tmp_path / 'nope.env')) is None

    def test_returns_none_when_no_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / '.git').mkdir()
        monkeypatch.chdir(tmp_path)
        assert load_env() is None


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings == Settings()
        assert settings.target_format == 'image/webp'
        assert settings.quality == 0.8
        assert settings.max_dim == 1200
        assert settings.max_depth == 6
        assert settings.transport == 'buffer'

    def test_reads_prefixed_vars(self) -> None:
        settings = Settings.from_env(
            {
                'UI_INVENTORY_FORMAT': 'image/png',
                'UI_INVENTORY_QUALITY': '0.5',
                'UI_INVENTORY_MAX_DIM': '800',
                'UI_INVENTORY_MAX_DEPTH': '3',
                'UI_INVENTORY_TRANSPORT': 'base64',
            }
        )
        assert settings == Settings('image/png', 0.5, 800, 3, 'base64')

    def test_blank_values_use_defaults(self) -> None:
        assert Settings.from_env({'UI_INVENTORY_MAX_DIM': '  ', 'UI_INVENTORY_FORMAT': ''}) == Settings()

    def test_malformed_number_names_variable(self) -> None:
        with pytest.raises(ValueError, match='UI_INVENTORY_MAX_DIM'):
            Settings.from_env({'UI_INVENTORY_MAX_DIM': 'big'})

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('UI_INVENTORY_MAX_DEPTH', '2')
        assert Settings.from_env().max_depth == 2
