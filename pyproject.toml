[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "reconkit"
version = "0.1.0"
description = "Building blocks for DNS reconnaissance: address arithmetic, subdomain matching, ASN caching, zone transfers and certificate name harvesting"
requires-python = ">=3.10"
keywords = ["dns", "subdomain", "enumeration", "asn", "zone-transfer", "axfr", "cidr", "tls", "crawler"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Name Service (DNS)",
    "Topic :: Security",
    "Topic :: System :: Networking",
]
dependencies = [
    "requests",
    "beautifulsoup4",
    "cryptography",
    "dnspython",
    "psutil",
    "termcolor",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["reconkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
