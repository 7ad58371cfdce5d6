"""Shared test fixtures for Modfence."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


def write_files(root: Path, files: dict[str, str]) -> None:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture()
def module_tree(tmp_path: Path) -> Path:
    """Create a small TS source tree with one index-bounded module.

    Layout::

        src/
          components/Button/index.ts      (publishes the Button module)
          components/Button/Button.tsx
          components/Button/parts/Icon.tsx
          components/Input.ts
          pages/Home.ts
          plain/a.ts                       (no index anywhere above)
    """
    root = tmp_path / "proj"
    write_files(
        root,
        {
            "src/components/Button/index.ts": 'export * from "./Button";\n',
            "src/components/Button/Button.tsx": "export const Button = 1;\n",
            "src/components/Button/parts/Icon.tsx": "export const Icon = 1;\n",
            "src/components/Input.ts": "export const Input = 1;\n",
            "src/pages/Home.ts": "export const Home = 1;\n",
            "src/plain/a.ts": "export const a = 1;\n",
        },
    )
    return root


@pytest.fixture()
def lint_project(module_tree: Path) -> Path:
    """Extend :func:`module_tree` with importing files.

    Expected findings, in file order:

    - ``src/pages/Home.ts:1`` deep import of ``Button/Button`` (no-deep-import)
    - ``src/widgets/Other.ts:2`` foreign import of ``Card.private`` (private-module)
    """
    write_files(
        module_tree,
        {
            "src/pages/Home.ts": (
                'import { Button } from "../components/Button/Button";\n'
                'import { Input } from "../components/Input";\n'
                'import React from "react";\n'
            ),
            "src/widgets/Card.private.ts": "export const secret = 1;\n",
            "src/widgets/Card.ts": "import { secret } from './Card.private';\n",
            "src/widgets/Other.ts": (
                "// uses the card internals\n"
                "import { secret } from './Card.private';\n"
            ),
        },
    )
    return module_tree
