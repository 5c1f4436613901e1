from setuptools import setup, find_packages

version = '0.1.0'
req = [
    'msgpack',
    'lz4',
    'psutil>=2.0.0',
    'addict',
]

setup(name='DKMeans',
      version=version,
      description="Iterative k-means clustering as a map/combine/reduce "
                  + "computation over partitioned point datasets.",
      classifiers=[
          "Programming Language :: Python",
          "Programming Language :: Python :: 3",
          'Intended Audience :: Developers',
          'License :: OSI Approved :: BSD License',
          'Operating System :: POSIX',
      ],
      keywords='kmeans clustering python mapreduce',
      license='BSD License',
      packages=find_packages(exclude=('tests', 'tests.*')),
      include_package_data=True,
      zip_safe=False,
      python_requires='>=3.7',
      install_requires=req,
      extras_require={
          'test': ['pytest', 'flaky'],
      },
      scripts=[
          'tools/kmeans.py',
      ]
      )
