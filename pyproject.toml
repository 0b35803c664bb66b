[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "amdsev"
version = "0.1.0"
description = "Data structures and wire layouts for AMD SEV and SEV-SNP platform and guest management"
requires-python = ">=3.10"
dependencies = []
keywords = ["amd", "sev", "sev-snp", "attestation", "confidential-computing", "certificates"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["amdsev"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
