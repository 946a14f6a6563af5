from setuptools import setup, find_packages

setup(
    name="hacktober-finder",
    version="1.0.0",
    description="Terminal explorer for Hacktoberfest repositories and issues",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "hacktober-finder=hacktober_finder.cli:main",
        ],
    },
)
