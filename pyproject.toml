[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "carbonslots"
version = "0.1.0"
description = "HTTP service that finds the lowest-carbon time slots in the next 24 hours of grid intensity forecasts"
requires-python = ">=3.10"
keywords = ["carbon", "intensity", "scheduling", "electricity", "forecast", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "requests>=2.28",
    "backoff>=2.2",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
carbon-slots = "carbonslots.server:main"

[tool.hatch.build.targets.wheel]
packages = ["carbonslots"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
