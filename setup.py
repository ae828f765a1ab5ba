from setuptools import setup, find_packages

setup(
    name="dagstore",
    version="1.0.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "PyYAML>=6.0",
        "base58>=2.1",
        "py-multihash>=2.0",
        "requests>=2.28",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)
