from setuptools import setup

setup(
    name='sprint-forest',
    version='1.0',
    py_modules=[
        'attribute_tables',
        'cart_tree',
        'forest_model',
        'impurity',
        'labeled_data',
        'rf_trainer',
        'split_search',
        'tree_builder',
    ],
    description='Random Forest training with CART trees grown on SPRINT attribute tables',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.10',
    install_requires=[
        'numpy',
        'joblib',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
