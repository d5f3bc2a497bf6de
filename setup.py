from setuptools import setup, find_packages


install_requires = [
    'click',
    'cryptography>=42',
    'zope.interface',
    'tabulate',
    'attrs',
    'jinja2',
]

tests_require = [
    'pytest',
]

console_scripts = [
    'hostca = hostca.cli:main',
]

classifiers = [
    'Intended Audience :: System Administrators',
    'Development Status :: 3 - Alpha',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Security',
]


setup(
    name='hostca',
    version='0.1.0',
    description='Standalone certificate authority for host certificates',
    license='MIT',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={'hostca': ['templates/*.jinja2']},
    python_requires='>=3.8',
    install_requires=install_requires,
    extras_require={'test': tests_require},
    classifiers=classifiers,
    entry_points={'console_scripts': console_scripts}
)
