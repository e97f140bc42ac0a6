from setuptools import setup, find_packages

# Runtime dependencies
install_requires = [
    # Core requirements - Single source of truth for all dependencies
    "colorama>=0.4.6",
    "PyYAML>=6.0.1",
    "rich>=13.5.2",
    "jsonschema>=4.19.0",
    "tomli>=2.0.1; python_version < '3.11'",

    # Statistics
    "numpy>=1.24.0",
    "scipy>=1.10.0",
    "pandas>=2.0.0",

    # Worker threads - Qt6 ecosystem
    "PyQt6>=6.5.0",
    "PyQt6-Qt6>=6.5.0",
    "PyQt6-sip>=13.5.0",
]

# Development dependencies
extras_require = {
    'dev': [
        'pytest>=7.4.0',
        'pytest-cov>=4.1.0',
        'black>=23.7.0',
        'isort>=5.12.0',
        'mypy>=1.4.1',
        'flake8>=6.1.0',
    ]
}

setup(
    name="statdialogs",
    version="1.0.0",
    description="Bivariate correlation and two-independent-samples test dialogs with a command line runner",
    packages=find_packages(include=["statdialogs", "statdialogs.*"]),
    python_requires='>=3.9',
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "statdialogs=statdialogs.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.9",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
)
