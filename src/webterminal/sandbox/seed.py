"""Starter files written into every new session sandbox.

Seeding is create-if-absent: an existing file is never overwritten, so
re-initializing a session keeps whatever the user changed.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

WELCOME_TXT = """Welcome to WebTerminal - Development Environment!

Node.js Development Ready:
- Node.js and npm available
- Git available
- Python 3 support

Development Commands:
- node --version
- npm init
- npm install <package>
- git clone <repository>
- mkdir my-project && cd my-project

System Commands:
- ls -la
- pwd
- whoami
- cat welcome.txt
"""

APP_PY = """#!/usr/bin/env python3
print("Hello from Python in WebTerminal!")
print("Current working directory:", __import__("os").getcwd())
"""

HELLO_JS = """console.log("Hello from Node.js!");
console.log("Node version:", process.version);
console.log("Working directory:", process.cwd());
"""

PACKAGE_JSON_TEMPLATE = """{
  "name": "my-project",
  "version": "1.0.0",
  "description": "A Node.js project in WebTerminal",
  "main": "index.js",
  "scripts": {
    "start": "node index.js",
    "dev": "node --watch index.js"
  },
  "keywords": [],
  "author": "",
  "license": "MIT"
}
"""

CLAUDE_SETUP_MD = """# Claude Code Setup Guide

## Installation
```bash
npm install -g @anthropic-ai/claude-code
claude doctor
```

## Usage
```bash
cd your-awesome-project
claude
```

## Project Setup
```bash
mkdir my-claude-project
cd my-claude-project
npm init -y
claude
```
"""

NPMRC = "prefix=${HOME}/.npm-global\n"

SAMPLE_PACKAGE_JSON = """{
  "name": "sample-claude-project",
  "version": "1.0.0",
  "description": "Sample project for Claude Code",
  "main": "index.js",
  "scripts": {
    "start": "node index.js",
    "dev": "node --watch index.js",
    "claude": "claude"
  },
  "keywords": ["claude", "ai", "development"],
  "author": "",
  "license": "MIT"
}
"""

SAMPLE_INDEX_JS = """// Sample Node.js application
console.log("Hello from the sample project!");
console.log("Project directory:", __dirname);
console.log("Node version:", process.version);

async function main() {
  console.log("Application started successfully!");
}

main().catch(console.error);
"""

SAMPLE_README_MD = """# Sample Project

A small Node.js project to experiment with.

## Getting Started

1. `cd sample-project`
2. `npm start`
"""

SEED_DIRECTORIES: tuple[str, ...] = (
    ".npm-global/bin",
    ".npm-global/lib",
    ".npm-cache",
    "sample-project",
)

# (relative path, content, mode or None for the default umask)
SEED_FILES: tuple[tuple[str, str, int | None], ...] = (
    ("welcome.txt", WELCOME_TXT, None),
    ("app.py", APP_PY, 0o755),
    ("hello.js", HELLO_JS, None),
    ("package.json.template", PACKAGE_JSON_TEMPLATE, None),
    ("claude-setup.md", CLAUDE_SETUP_MD, None),
    (".npmrc", NPMRC, None),
    ("sample-project/package.json", SAMPLE_PACKAGE_JSON, None),
    ("sample-project/index.js", SAMPLE_INDEX_JS, None),
    ("sample-project/README.md", SAMPLE_README_MD, None),
)


def seed_sandbox(root: Path) -> list[Path]:
    """Create the sandbox directory tree and starter files under ``root``.

    Blocking; call through ``asyncio.to_thread`` from async code.

    Returns:
        The files that were newly written (empty on a re-seed).
    """
    root.mkdir(parents=True, exist_ok=True)
    for directory in SEED_DIRECTORIES:
        (root / directory).mkdir(parents=True, exist_ok=True)

    created: list[Path] = []
    for relative, content, mode in SEED_FILES:
        path = root / relative
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(content)
        except FileExistsError:
            continue
        if mode is not None:
            path.chmod(mode)
        created.append(path)

    if created:
        logger.debug("Seeded %d files into %s", len(created), root)
    return created
