from setuptools import setup, find_packages

setup(
    name="lrnufft",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "numpy>=1.17.0",
        "scipy>=1.3.0",
        "pyfftw>=0.12.0",
        "psutil>=5.6.0",
    ],
    extras_require={
        "dev": ["pytest", "pytest-cov", "black", "flake8"],
        "docs": ["sphinx", "sphinx-rtd-theme"],
        "bench": ["tabulate"],
    },
    python_requires=">=3.7",
    description="Fast nonuniform discrete Fourier transforms via low-rank kernel approximation",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
)
