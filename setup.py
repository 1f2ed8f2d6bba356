from setuptools import setup


setup(
    name="roster-desk",
    version="0.3.0",
    description="Prepare driver rosters from messy CSV exports, request monthly schedules and export them to Excel",
    packages=["roster_desk"],
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "streamlit",
        "requests",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "roster-desk=roster_desk.cli:main",
        ]
    },
)
