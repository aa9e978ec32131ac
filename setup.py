#
# Copyright 2015 Google Inc. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

from setuptools import setup
from setuptools import find_packages


REQUIREMENTS = [
    # Generated Datastore v1 protocol buffer messages.
    'google-cloud-datastore>=2.7.0',
    'googleapis-common-protos',
    'httplib2',
    'oauth2client',
    'protobuf',
]
TEST_REQUIREMENTS = [
    'flexmock',
    'pytest',
    'pytz',
]

setup(
    name='gcloud-datastore',
    version='0.5.0',
    description='Google Cloud Datastore entity, key and query client',
    author='Google Cloud Datastore Team',
    author_email='gcd-discuss@google.com',
    scripts=[],
    url='https://github.com/GoogleCloudPlatform/google-cloud-datastore',
    packages=find_packages(),
    license='Apache 2.0',
    platforms='Posix; MacOS X; Windows',
    include_package_data=True,
    zip_safe=False,
    python_requires='>=3.7',
    install_requires=REQUIREMENTS,
    tests_require=TEST_REQUIREMENTS,
    extras_require={
        'test': TEST_REQUIREMENTS,
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Database',
        'Topic :: Internet',
    ]
)
