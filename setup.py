from setuptools import setup, find_packages

setup(
    name="tagexport",
    version="0.1.0",
    packages=find_packages(include=["tagexport", "tagexport.*"]),
    install_requires=[
        "rich>=13.0.0",  # Explicit minimum version
        "psutil",
        "imageio-ffmpeg>=0.4.9",  # Bundled encoder for the embedded backend
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "tagexport=tagexport.__main__:main",
        ],
    },
    python_requires=">=3.9",
)
