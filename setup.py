from setuptools import setup, find_packages

setup(
    name="soundgraph-recommend",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "networkx",
        "pyyaml",
        "python-dotenv",
        "loguru"
    ],
    extras_require={
        "test": ["pytest"],
    },
)
