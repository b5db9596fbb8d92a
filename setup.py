from setuptools import setup, find_packages

setup(
    name="kubb-trainer",
    version="0.1.0",
    description="Kubb practice session scoring with companion watch sync",
    author="Kubb Trainer",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "kubb_trainer.database": ["schema.sql"],
    },
    python_requires=">=3.11",
    install_requires=[
        "PyQt6>=6.6.0",
        "numpy>=1.26.0",
        "scipy>=1.12.0",
    ],
    extras_require={
        "test": ["pytest>=7.4.0", "pytest-qt>=4.2.0"],
    },
    entry_points={
        "console_scripts": [
            "kubb-trainer=kubb_trainer.main:main",
        ],
    },
)
