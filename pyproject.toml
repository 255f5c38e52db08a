[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "claudex"
version = "0.2.4"
description = "Translation between the Anthropic Messages API and OpenAI-style chat and responses APIs, with routing rules, circuit breakers and metrics"
requires-python = ">=3.10"
dependencies = []
keywords = ["claude", "proxy", "llm", "ai", "translation", "openai", "anthropic", "sse"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["claudex"]

[tool.hatch.build.targets.sdist]
include = ["claudex", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
