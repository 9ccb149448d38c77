[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gbnudp"
version = "1.0.0"
description = "File transfer over UDP with a three-way handshake, CRC-32 checked segments and Go-Back-N retransmission"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["udp", "go-back-n", "arq", "file-transfer", "crc32", "networking"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: File Transfer Protocol (FTP)",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
gbnudp-server = "gbnudp.server:main"
gbnudp-client = "gbnudp.client:main"

[tool.hatch.build.targets.wheel]
packages = ["gbnudp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
