from setuptools import setup, find_packages


setup(
    name="cartdecode",
    version="0.1",
    packages=find_packages(include=["cartdecode", "cartdecode.*"]),
    description="Decoder for CaRT (Compressed and RC4 Transport) containers.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "cartdecode=cartdecode.cli:main",
        ]
    },
)
