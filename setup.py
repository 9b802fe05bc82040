from setuptools import setup, find_packages
setup(
    name="free_data_integration",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "beautifulsoup4",
        "fastapi",
        "pydantic>=2",
        "requests",
    ],
    extras_require={
        "test": ["httpx", "pytest"],
    },
    entry_points={
        'console_scripts': [
            'free_data_integration=free_data_integration.__main__:main'
        ]
    }
)
