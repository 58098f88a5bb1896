import subprocess
from importlib.metadata import PackageNotFoundError
from unittest.mock import patch

from vsaudit.version import PACKAGE_DIR
from vsaudit.version import get_commit_hash
from vsaudit.version import get_version
from vsaudit.version import get_version_string


def _versions(vsaudit_version, pyvmomi_version="8.0.3.0.1"):
    def version(distribution):
        return {"vsaudit": vsaudit_version, "pyvmomi": pyvmomi_version}[distribution]

    return version


class TestGetVersion:
    def test_installed_distribution(self):
        with patch('vsaudit.version.version', side_effect=_versions('0.1.0')):
            assert get_version() == '0.1.0'
            assert get_version('pyvmomi') == '8.0.3.0.1'

    def test_dev_when_not_installed(self):
        with patch('vsaudit.version.version', side_effect=PackageNotFoundError):
            assert get_version() == 'dev'


class TestGetCommitHash:
    def test_runs_git_in_package_directory(self):
        with patch('subprocess.run') as mock_run:
            mock_run.return_value.returncode = 0
            mock_run.return_value.stdout = 'abc1234\n'

            assert get_commit_hash() == 'abc1234'
            assert mock_run.call_args.kwargs['cwd'] == PACKAGE_DIR

    def test_not_a_git_checkout(self):
        with patch('subprocess.run') as mock_run:
            mock_run.return_value.returncode = 128
            mock_run.return_value.stdout = ''

            assert get_commit_hash() is None

    def test_git_unavailable(self):
        with patch('subprocess.run', side_effect=FileNotFoundError):
            assert get_commit_hash() is None

    def test_git_timeout(self):
        with patch('subprocess.run', side_effect=subprocess.TimeoutExpired('git', 5)):
            assert get_commit_hash() is None


class TestGetVersionString:
    def test_with_commit(self):
        with (
            patch('vsaudit.version.version', side_effect=_versions('0.1.0')),
            patch('vsaudit.version.get_commit_hash', return_value='abc1234'),
        ):
            assert get_version_string() == (
                'vsaudit, version 0.1.0 (commit: abc1234), pyvmomi 8.0.3.0.1'
            )

    def test_without_commit(self):
        with (
            patch('vsaudit.version.version', side_effect=_versions('0.1.0')),
            patch('vsaudit.version.get_commit_hash', return_value=None),
        ):
            assert get_version_string() == 'vsaudit, version 0.1.0, pyvmomi 8.0.3.0.1'
