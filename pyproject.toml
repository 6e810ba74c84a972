[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "edgewire"
version = "0.1.0"
description = "Small-footprint MQTT client, MessagePack codec and JSON-like document model for telemetry devices"
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "msgpack", "messagepack", "json", "iot", "telemetry", "url"]
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
    "Topic :: Communications",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["edgewire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
