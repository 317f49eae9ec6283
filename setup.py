# setup.py
from setuptools import setup, find_packages

setup(
    name="daybook",
    version="0.1.0",
    description="Local storage for dated transactions, notes and the day index",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/daybook",
    packages=find_packages(include=["daybook", "daybook.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "xlsxwriter>=3.0",
        "python-dotenv>=0.19",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "openpyxl>=3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "daybook=daybook.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
