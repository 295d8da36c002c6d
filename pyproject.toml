[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "policybot"
version = "0.1.0"
description = "Evaluate approval and disapproval policies for pull requests."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["pull request", "code review", "approval", "policy", "git"]
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
    "Topic :: Software Development :: Version Control :: Git",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["policybot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
