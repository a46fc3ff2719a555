from setuptools import setup, find_packages

setup(
    name="giro_umsatz",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["umsatz_giro"],
    install_requires=[
        "pandas>=1.5",
        "numpy",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "umsatz-giro=giro_umsatz.umsatz:main",
        ],
    },
    description="Category reports for giro account statements in CAMT-V2 CSV format",
    python_requires=">=3.8",
)
