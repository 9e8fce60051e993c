"""Setup script for the gh-actions-dash package."""

from setuptools import find_packages, setup

setup(
    name="gh-actions-dash",
    version="0.3.0",
    description="Terminal dashboard for GitHub Actions workflows, runs, jobs and logs",
    packages=find_packages(include=["actions_dash", "actions_dash.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "requests>=2.28",
        "rich>=13.0",
        "textual>=0.47",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "gh-actions-dash=actions_dash.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
