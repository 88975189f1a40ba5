# File: tests/test_task_report.py
from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from site_audit.report.task_report import create_task_report_from_route
from site_audit.resolver import resolve_user_config
from site_audit.routes import normalise_route
from site_audit.runtime import create_runtime_settings
from site_audit.utils import hash_path_name


def test_runtime_output_path_includes_site_host(runtime_settings, project_root):
    assert runtime_settings.output_path == project_root / ".unlighthouse" / "example-com"
    assert runtime_settings.routes_path == runtime_settings.output_path / "routes"
    assert runtime_settings.site_origin == "https://example.com"


def test_runtime_output_path_without_site(project_root, fake_provisioner):
    resolved = asyncio.run(
        resolve_user_config({"root": str(project_root), "output_path": "reports"}, provisioner=fake_provisioner)
    )
    runtime = create_runtime_settings(resolved)
    assert runtime.output_path == project_root / "reports"
    assert runtime.site_origin is None


@pytest.mark.parametrize(
    "url,path,absolute",
    [
        ("/blog/?page=2#top", "/blog", "https://example.com/blog"),
        ("https://example.com/Docs/Intro/", "/Docs/Intro", "https://example.com/Docs/Intro"),
        ("/", "/", "https://example.com/"),
        ("about", "/about", "https://example.com/about"),
    ],
)
def test_normalise_route(url, path, absolute):
    route = normalise_route(url, "https://example.com")
    assert route.path == path
    assert route.url == absolute
    assert route.id == hash_path_name(path)


def test_create_task_report_paths(runtime_settings):
    route = normalise_route("/foo/Bar Baz/", "https://example.com")
    report = create_task_report_from_route(route, runtime_settings)

    expected_dir = runtime_settings.routes_path / "foo" / "bar-baz"
    assert report.artifact_path == expected_dir
    assert expected_dir.is_dir()
    assert report.report_id == hash_path_name("/foo/Bar Baz/")
    assert report.html_payload == expected_dir / "payload.html"
    assert report.report_html == expected_dir / "lighthouse.html"
    assert report.report_json == expected_dir / "lighthouse.json"
    assert report.tasks == {}
    assert report.route is route


def test_create_task_report_is_idempotent(runtime_settings):
    route = normalise_route("/pricing", "https://example.com")
    first = create_task_report_from_route(route, runtime_settings)
    second = create_task_report_from_route(route, runtime_settings)

    assert first.artifact_path == second.artifact_path
    assert (first.html_payload, first.report_html, first.report_json) == (
        second.html_payload,
        second.report_html,
        second.report_json,
    )
    # status maps are never shared between reports
    assert first.tasks is not second.tasks


def test_root_route_uses_routes_dir(runtime_settings):
    report = create_task_report_from_route(normalise_route("/", "https://example.com"), runtime_settings)
    assert report.artifact_path == runtime_settings.routes_path
    assert report.report_json == runtime_settings.routes_path / "lighthouse.json"


def test_concurrent_creation(runtime_settings):
    paths = [f"/section-{i % 4}/page-{i % 8}" for i in range(64)]
    routes = [normalise_route(p, "https://example.com") for p in paths]

    with ThreadPoolExecutor(max_workers=16) as pool:
        reports = list(pool.map(lambda r: create_task_report_from_route(r, runtime_settings), routes))

    assert len(reports) == len(routes)
    for route, report in zip(routes, reports):
        assert report.artifact_path.is_dir()
        assert report.report_id == route.id
    assert len({r.artifact_path for r in reports}) == 8


def test_filesystem_errors_propagate(runtime_settings):
    runtime_settings.routes_path.mkdir(parents=True, exist_ok=True)
    (runtime_settings.routes_path / "blocked").write_text("not a directory")
    with pytest.raises(OSError):
        create_task_report_from_route(normalise_route("/blocked/child", "https://example.com"), runtime_settings)


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/-/etc", ("etc",)),
        ("/aux/page", ("page",)),
        ("/~/", ()),
        ("/con/nested/Deep Page", ("nested", "deep-page")),
    ],
)
def test_blank_segments_stay_under_routes_dir(runtime_settings, path, expected):
    route = normalise_route(path, "https://example.com")
    report = create_task_report_from_route(route, runtime_settings)

    assert report.artifact_path == runtime_settings.routes_path.joinpath(*expected)
    assert report.artifact_path.is_dir()
    for artifact in (report.html_payload, report.report_html, report.report_json):
        assert runtime_settings.routes_path in artifact.parents


def test_leading_blank_segment_does_not_escape(runtime_settings, tmp_path):
    outside = tmp_path / "outside"
    route = normalise_route(f"/-{outside}", "https://example.com")
    report = create_task_report_from_route(route, runtime_settings)

    assert runtime_settings.routes_path in report.report_json.parents
    assert not outside.exists()
