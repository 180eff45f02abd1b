"""Baseline project skeletons, one per platform tag.

The structure planner shows the selected skeleton to the model as the
expected response shape and then merges the model's tree on top of it, so
every entry listed here always ends up in the generated project.
"""

from __future__ import annotations

import copy
from typing import Any

DEFAULT_PLATFORM = "none"


def _file(name: str, purpose: str) -> dict[str, Any]:
    return {"name": name, "type": "file", "purpose": purpose}


def _dir(name: str, *children: dict[str, Any]) -> dict[str, Any]:
    return {"name": name, "type": "directory", "children": list(children)}


# ---------------------------------------------------------------------------
# Skeletons
# ---------------------------------------------------------------------------

_SKELETONS: dict[str, dict[str, Any]] = {
    "none": _dir(
        "root",
        _dir(
            "src",
            _file("index.html", "Main HTML file with Tailwind CSS setup"),
            _file("style.css", "Custom styles (if needed beyond Tailwind)"),
            _file("script.js", "JavaScript functionality"),
        ),
    ),
    "react": _dir(
        "root",
        _dir(
            "public",
            _file("index.html", "Main HTML file"),
            _file("manifest.json", "PWA manifest"),
            _file("robots.txt", "Search engine instructions"),
        ),
        _dir(
            "src",
            _dir("assets", _dir("images"), _dir("styles")),
            _dir(
                "components",
                _file("Header.js", "Header component"),
                _file("Footer.js", "Footer component"),
                _file("Sidebar.js", "Sidebar component"),
            ),
            _dir(
                "pages",
                _file("Home.js", "Home page"),
                _file("About.js", "About page"),
            ),
            _file("App.js", "Main App component"),
            _file("index.js", "Entry point"),
            _file("styles.css", "Global styles"),
        ),
        _file(".gitignore", "Git ignore file"),
        _file("package.json", "Project configuration"),
        _file("README.md", "Project documentation"),
    ),
    "vue": _dir(
        "root",
        _dir(
            "src",
            _dir("components"),
            _dir("views"),
            _dir("assets", _dir("styles"), _dir("images")),
            _dir("router", _file("index.js", "Vue Router configuration")),
            _dir("store", _file("index.js", "Application state store")),
            _file("App.vue", "Root component"),
            _file("main.js", "Entry point that mounts the app"),
        ),
        _dir("public", _file("index.html", "Main HTML file")),
        _file("package.json", "Project configuration"),
    ),
    "angular": _dir(
        "root",
        _dir(
            "src",
            _dir(
                "app",
                _dir("components"),
                _dir("pages"),
                _dir("services", _file("api.service.ts", "HTTP API service")),
                _file("app.component.ts", "Root component class"),
                _file("app.component.html", "Root component template"),
                _file("app.component.css", "Root component styles"),
                _file("app.module.ts", "Root module"),
                _file("app-routing.module.ts", "Route definitions"),
            ),
        ),
        _file("angular.json", "Angular workspace configuration"),
        _file("package.json", "Project configuration"),
        _file("tsconfig.json", "TypeScript configuration"),
        _file("README.md", "Project documentation"),
        _file(".gitignore", "Git ignore file"),
    ),
    "next": _dir(
        "root",
        _dir(
            "src",
            _dir(
                "app",
                _file("layout.tsx", "Root layout"),
                _file("page.tsx", "Home page"),
            ),
            _dir("components"),
            _dir("lib"),
            _dir("styles", _file("globals.css", "Global styles")),
        ),
        _dir("public"),
        _file("next.config.js", "Next.js configuration"),
        _file("package.json", "Project configuration"),
        _file("tsconfig.json", "TypeScript configuration"),
    ),
}


def known_platforms() -> list[str]:
    """Return the platform tags that have their own skeleton."""
    return sorted(_SKELETONS)


def get_skeleton(platform: str) -> dict[str, Any]:
    """Return a deep copy of the skeleton for ``platform``.

    Unknown tags fall back to the static-site (``none``) skeleton.
    """
    skeleton = _SKELETONS.get(platform.lower(), _SKELETONS[DEFAULT_PLATFORM])
    return copy.deepcopy(skeleton)
