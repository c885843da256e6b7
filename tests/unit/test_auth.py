from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from gemini_plugin import auth as auth_module
from gemini_plugin.auth import (
    auth_environment,
    build_child_env,
    detect_auth_mode,
    looks_like_inline_json,
    resolve_auth,
)
from gemini_plugin.models import AuthMode

SA_JSON = json.dumps({"type": "service_account", "project_id": "my-project"})


@pytest.mark.parametrize("credentials", ["", "/path/sa.json", SA_JSON])
def test_api_key_with_project_is_always_vertex(credentials: str) -> None:
    mode = detect_auth_mode(api_key="k", gcp_project="p", gcp_credentials=credentials)
    assert mode == AuthMode.VERTEX_AI


@pytest.mark.parametrize("credentials", ["/path/sa.json", SA_JSON])
def test_credentials_without_project_never_qualify(credentials: str) -> None:
    mode = detect_auth_mode(api_key="", gcp_project="", gcp_credentials=credentials)
    assert mode == AuthMode.NONE


def test_api_key_alone_is_api_key_mode() -> None:
    assert detect_auth_mode(api_key="k", gcp_project="", gcp_credentials="") == AuthMode.API_KEY


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ('{"type": "service_account"}', True),
        ('  \n {"type": "service_account"}', True),
        ("/secrets/sa.json", False),
        ("sa.json", False),
        ("", False),
    ],
)
def test_looks_like_inline_json(value: str, expected: bool) -> None:
    assert looks_like_inline_json(value) is expected


def test_api_key_mode_sets_gemini_api_key(make_config) -> None:
    resolution = resolve_auth(make_config(api_key="AIza_test"))

    assert resolution.mode == AuthMode.API_KEY
    assert resolution.overrides == (("GEMINI_API_KEY", "AIza_test"),)
    assert resolution.temp_files == ()


def test_no_auth_sets_nothing(make_config) -> None:
    resolution = resolve_auth(make_config())

    assert resolution.mode == AuthMode.NONE
    assert resolution.overrides == ()


def test_vertex_with_api_key(make_config) -> None:
    resolution = resolve_auth(
        make_config(api_key="AIza_test", gcp_project="my-project", gcp_location="europe-west4")
    )
    env = dict(resolution.overrides)

    assert resolution.mode == AuthMode.VERTEX_AI
    assert env == {
        "GOOGLE_GENAI_USE_VERTEXAI": "true",
        "GOOGLE_CLOUD_PROJECT": "my-project",
        "GOOGLE_CLOUD_LOCATION": "europe-west4",
        "GOOGLE_API_KEY": "AIza_test",
    }
    assert "GEMINI_API_KEY" not in env


def test_vertex_omits_empty_location(make_config) -> None:
    resolution = resolve_auth(make_config(api_key="k", gcp_project="p", gcp_location=""))
    assert "GOOGLE_CLOUD_LOCATION" not in dict(resolution.overrides)


def test_vertex_with_relative_credentials_path(make_config, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    resolution = resolve_auth(make_config(gcp_credentials="keys/sa.json", gcp_project="p"))
    env = dict(resolution.overrides)

    cred_path = env["GOOGLE_APPLICATION_CREDENTIALS"]
    assert os.path.isabs(cred_path)
    assert Path(cred_path) == tmp_path / "keys" / "sa.json"
    assert resolution.temp_files == ()


def test_inline_credentials_are_written_to_temp_file(make_config) -> None:
    resolution = resolve_auth(make_config(gcp_credentials=SA_JSON, gcp_project="p"))
    try:
        cred_path = Path(dict(resolution.overrides)["GOOGLE_APPLICATION_CREDENTIALS"])
        assert cred_path.is_absolute()
        assert cred_path.read_text(encoding="utf-8") == SA_JSON
        assert resolution.temp_files == (cred_path,)
    finally:
        resolution.cleanup()

    assert not cred_path.exists()


def test_unwritable_temp_file_passes_content_through(make_config, monkeypatch) -> None:
    def _fail(content: str) -> Path:
        raise OSError("read-only filesystem")

    monkeypatch.setattr(auth_module, "_write_credentials_file", _fail)
    resolution = resolve_auth(make_config(gcp_credentials=SA_JSON, gcp_project="p"))

    cred_path = dict(resolution.overrides)["GOOGLE_APPLICATION_CREDENTIALS"]
    assert SA_JSON in cred_path
    assert resolution.temp_files == ()


def test_auth_environment_removes_temp_file_on_error(make_config) -> None:
    seen: list[Path] = []

    with pytest.raises(RuntimeError):
        with auth_environment(make_config(gcp_credentials=SA_JSON, gcp_project="p")) as resolution:
            seen.extend(resolution.temp_files)
            assert seen[0].exists()
            raise RuntimeError("boom")

    assert seen and not seen[0].exists()


def test_build_child_env_applies_overrides_in_order() -> None:
    base = {"PATH": "/usr/bin", "GEMINI_API_KEY": "stale"}
    env = build_child_env(base, [("GEMINI_API_KEY", "a"), ("X", "1"), ("GEMINI_API_KEY", "b")])

    assert env == {"PATH": "/usr/bin", "GEMINI_API_KEY": "b", "X": "1"}
    assert base == {"PATH": "/usr/bin", "GEMINI_API_KEY": "stale"}
