from setuptools import setup, find_packages

setup(
    name="astrapath",
    version="0.1.0",
    description="Safe Companion distress detection and escalation core",
    author="",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "astrapath=astrapath.main:main",
        ],
    },
)
