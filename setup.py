from setuptools import setup, find_packages

setup(
    name="gstt",
    version="0.1.0",
    description="Streaming client for Google's full-duplex speech recognition endpoint",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["examples*", "tests*"]),
    install_requires=["httpx>=0.27.0", "pydantic>=2.0", "protobuf>=4.25", "aiofiles>=24.1.0", "numpy>=2.2.3", "soundfile>=0.12.1"],
    extras_require={
        "mic": ["PyAudio>=0.2.14"],
        "test": ["pytest>=8.0", "pytest-asyncio>=0.23"],
    },
    entry_points={
        "console_scripts": ["gstt=gstt.cli:main"]
    },
    python_requires=">=3.10",
    license="Apache v2",
    classifiers=[
        "Programming Language :: Python :: 3"
    ]
)
