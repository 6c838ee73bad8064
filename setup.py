from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="udp-nmea-sender",
    version="1.0.0",
    author="Your Name",
    description="Send NMEA0183 messages over UDP",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/udp-nmea-sender",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "aiofiles>=23.2.1",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-dotenv>=1.0.0",
        "structlog>=24.1.0",
        "prometheus-client>=0.19.0",
        "psutil>=5.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "udp-nmea-sender=udp_nmea_sender.__main__:main",
        ],
    },
)
