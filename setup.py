# setup.py
from setuptools import setup, find_packages

setup(
    name="expense-client",
    version="0.1.0",
    description="A client for tracking income and expenses against a remote expense API",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/expense-client",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.9",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "python-dotenv>=0.19",
        "requests>=2.25",
        "pandas>=1.1",
        "xlsxwriter>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "openpyxl>=3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "expense-client=expense_client.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
