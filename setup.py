from setuptools import setup, find_packages

setup(
    name="market-power-ratings",
    version="0.1.0",
    description="Market-adjusted power ratings with cross-feed team name resolution",
    author="Ben Rosen",
    packages=find_packages(include=["power_ratings", "power_ratings.*"]),
    install_requires=[
        "numpy>=1.22.4",
        "pandas>=1.5.3",
        "requests>=2.31.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "power-ratings=power_ratings.main:main",
        ],
    },
)
