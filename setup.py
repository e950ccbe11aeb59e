from setuptools import setup, find_packages

setup(
    name="eventscheduler",
    version="0.1.0",
    description="In-process delayed-callback event scheduler with pause/resume and persistence",
    python_requires=">=3.10",
    packages=find_packages(include=["eventscheduler", "eventscheduler.*"]),
    install_requires=[
        "apscheduler>=3.10.0,<4",
        "python-dotenv>=1.0.0",
        "pydantic>=2.0.0",
        "loguru>=0.7.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
)
