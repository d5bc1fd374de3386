"""Setup configuration for ai-gallery package."""

from setuptools import find_packages, setup

# Read version from __version__.py
version = {}
with open("src/python/ai_gallery/__version__.py") as f:
    exec(f.read(), version)

# Read README
with open("README.md", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="ai-gallery",
    version=version["__version__"],
    description="Personal gallery for AI-generated images and videos with prompt and workflow metadata",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="AI Gallery Team",
    python_requires=">=3.11",
    package_dir={"": "src/python"},
    packages=find_packages(where="src/python", include=["ai_gallery", "ai_gallery.*"]),
    install_requires=[
        "pyyaml>=6.0.1",
        "pandas>=2.1.4,<3",
        "pillow>=10.2.0",
        "sqlalchemy>=2.0.25",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-cov>=4.1.0",
            "pytest-mock>=3.12.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
)
