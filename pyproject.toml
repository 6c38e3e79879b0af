[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "codespy"
version = "0.1.0"
description = "Java bytecode decoding, disassembly listings and lowering to a basic-block intermediate representation"
requires-python = ">=3.10"
dependencies = []
keywords = ["java", "bytecode", "constant-pool", "disassembler", "jvm", "ir"]
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
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["codespy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
