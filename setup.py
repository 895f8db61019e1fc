from setuptools import setup, find_packages

setup(
    name="slidegame",
    version="0.1.0",
    packages=find_packages(include=["slidegame", "slidegame.*"]),
    install_requires=[
        "gymnasium",
        "numpy",
    ],
)
