from setuptools import setup, find_packages

setup(
    name="nextcloud-exporter",
    version="1.0.0",
    description="Prometheus exporter for the Nextcloud serverinfo API",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "prometheus-client>=0.17.0",
        "structlog>=23.1.0",
        "python-json-logger>=2.0.7",
        "requests>=2.31.0",
        "urllib3>=1.26",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "nextcloud-exporter=nextcloud_exporter.__main__:main",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
