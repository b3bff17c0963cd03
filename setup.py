from setuptools import setup, find_packages

setup(
    name="dualrec",
    version="0.1.0",
    description="Segmented dual-stream (microphone + system audio) recording session manager",
    author="",
    python_requires=">=3.9",
    packages=find_packages(include=["dualrec", "dualrec.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "rich>=12.5.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "numpy>=1.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dualrec=dualrec.main:main",
        ],
    },
)
