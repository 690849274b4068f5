from setuptools import setup, find_packages

setup(
    name="pybuildext",
    description="Builds native extensions of packages with their own toolchains",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="Loris Kriyonas",
    author_email="loris.kriyonas@gmail.com",
    keywords=["extensions", "build", "native"],
    python_requires=">=3.11",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "returns",
        "toml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    setup_requires=[
        "setuptools>=42",
        "setuptools_scm>=3.5",
    ],
    use_scm_version={
        "write_to": "pybuildext/__version__.py",
        "fallback_version": "0.1.0",
    },
)
