"""Package telemlink (sources live under python/)."""

from setuptools import setup, find_packages

setup(
    name="telemlink",
    version="0.1.0",
    description="WebSocket telemetry client and line-protocol decoder",
    package_dir={"": "python"},
    packages=find_packages("python"),
    python_requires=">=3.10",
    install_requires=[
        "websockets>=13.0",
        "numpy",
    ],
    extras_require={
        "viewer": ["dearpygui"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "telemlink=telemlink.cli:main",
            "telemlink-viewer=telemlink.viewer:launch",
        ],
    },
)
