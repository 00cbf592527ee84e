from setuptools import setup, find_packages

setup(
    name="fraccount",
    version="0.1.0",
    description="Box counting fractal dimension of binary volumes and grey-level surfaces",
    packages=find_packages(include=["fraccount", "fraccount.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.19.0",
        "numba>=0.55.0",
        "scipy>=1.6.0",
        "scikit-learn>=0.24.0",
        "tqdm>=4.50.0",
        "pandas>=2.2.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
