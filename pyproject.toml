[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "elastigo"
version = "0.0.2"
description = "A small Elasticsearch client: documents, search, cluster, node and cat APIs"
requires-python = ">=3.10"
dependencies = []
keywords = ["elasticsearch", "search", "client", "http", "cat"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
elastigo-demo = "elastigo.client:main"

[tool.hatch.build.targets.wheel]
packages = ["elastigo"]

[tool.pytest.ini_options]
addopts = "-ra"
