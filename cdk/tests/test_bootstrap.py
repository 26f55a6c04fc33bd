import os

import pytest

from stacks.bootstrap import APP_DIR, load_bootstrap_script, resolve_script_path
from stacks.config import StackConfig
from stacks.errors import BootstrapScriptError


def test_loads_script_verbatim(bootstrap_file):
    assert load_bootstrap_script(str(bootstrap_file)) == "#!/bin/bash\necho bootstrapped\n"


def test_relative_path_resolves_against_base_dir(bootstrap_file):
    script = load_bootstrap_script(bootstrap_file.name, base_dir=str(bootstrap_file.parent))

    assert "echo bootstrapped" in script


def test_relative_path_defaults_to_app_dir():
    assert resolve_script_path("assets/x.sh") == os.path.join(APP_DIR, "assets/x.sh")


def test_shipped_script_installs_java_and_codedeploy_agent():
    script = load_bootstrap_script(StackConfig().bootstrap_script)

    assert "java" in script
    assert "codedeploy-agent" in script


def test_missing_script(tmp_path):
    missing = tmp_path / "nope.sh"

    with pytest.raises(BootstrapScriptError, match="file not found") as excinfo:
        load_bootstrap_script(str(missing))

    assert excinfo.value.path == str(missing)


def test_empty_script(tmp_path):
    empty = tmp_path / "empty.sh"
    empty.write_text("   \n", encoding="utf-8")

    with pytest.raises(BootstrapScriptError, match="empty"):
        load_bootstrap_script(str(empty))


def test_directory_is_not_a_script(tmp_path):
    with pytest.raises(BootstrapScriptError):
        load_bootstrap_script(str(tmp_path))
