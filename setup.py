from setuptools import setup
import re

__version__ = re.findall(r"""__version__ = ["']+([0-9\.]*)["']+""", open("gridglue/__init__.py").read())[0]

setup(
    name="gridglue",
    version=__version__,
    description="gridglue glues multiblock structured grids described by a Neutral Map File into unstructured meshes.",
    keywords="NMF plot3d Fluent multiblock",
    author="",
    author_email="",
    url="",
    license="Apache 2.0",
    packages=["gridglue"],
    install_requires=["numpy>=1.21", "scipy>=1.7"],
    extras_require={
        "testing": ["mdolab-baseclasses>=1.3", "testflo", "parameterized"],
    },
    classifiers=["Operating System :: Linux", "Programming Language :: Python"],
    entry_points={"console_scripts": ["grid_glue = gridglue.grid_glue:main"]},
)
