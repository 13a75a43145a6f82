import allure
from click.testing import CliRunner

from pg_radar import __version__
from pg_radar.main import pg_radar

pytestmark = [
    allure.epic("Command Line"),
    allure.feature("Collect Command"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(pg_radar, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
