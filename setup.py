from setuptools import setup, find_packages

# Read requirements from requirements.txt
with open('requirements.txt') as f:
    requirements = f.read().splitlines()

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="bgcutout",
    version="0.1.0",
    packages=find_packages(exclude=["tests"]),
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "bgcutout=bgcutout.main:main",
        ],
    },
    description="Solid-color background removal with flood fill and edge erosion",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    keywords="background-removal, chroma-key, green-screen, alpha",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Multimedia :: Graphics",
        "Development Status :: 4 - Beta",
    ],
    python_requires=">=3.11",
)
