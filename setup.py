from setuptools import setup, find_packages

setup(
    name='Guided-Labeling',
    version='0.1',
    packages=find_packages(include=['GuidedLabeling', 'GuidedLabeling.*']),
    py_modules=['guided_labeling_main'],
    include_package_data=True,
    url='',
    license='GPT-3.0 License',
    author='Benjamin Wilson',
    author_email='benjamintaya0111@gmail.com',
    description='Superpixel guided labeling workflow: category synchronisation, certainty ranking and job polling.',
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GPT-3.0 License",
        "Operating System :: OS Independent",
    ],
    install_requires=[
        "PyQt5",
        "numpy",
        "pydantic>=2",
        "zstandard",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["guided-labeling=guided_labeling_main:main"],
    },
    python_requires='>=3.8',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown'
)
