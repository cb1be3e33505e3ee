from setuptools import setup, find_packages


setup(
    name="aocompressor",
    version="0.1",
    packages=find_packages(include=["aocompressor", "aocompressor.*"]),
    description="Packs game resource folders into .ao (ZIP) archives, extracts them safely, and inspects their contents.",
    author="aocompressor contributors",
    python_requires=">=3.11",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "aocompressor=aocompressor.cli:main",
        ]
    },
)
