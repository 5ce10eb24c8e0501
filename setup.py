from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="polygon_annotation",
    version=Path("./polygon_annotation/VERSION").read_text().strip(),
    description="Interactive polygon annotation over raster images",
    packages=find_packages(include=["polygon_annotation", "polygon_annotation.*"]),
    package_data={"polygon_annotation": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "matplotlib",
        "easydict",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "polygon_annotation=polygon_annotation.cli:main",
        ],
    },
)
