from setuptools import setup, find_packages

setup(
    name='rig_panorama',
    version='0.1.0',
    description='Two-camera panorama calibration and stitching-map based compositing using OpenCV',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'opencv-python',
        'numpy',
        'PyYAML',
        'stitching'
    ],
    extras_require={
        'superpoint': [
            'torch',
            'torchvision',
            'lightglue @ git+https://github.com/cvg/LightGlue.git'
        ],
        'test': [
            'pytest'
        ]
    },
    entry_points={
        'console_scripts': [
            'rig-panorama=rig_panorama.cli:main'
        ]
    },
    include_package_data=True,
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
