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
"""gcloud_datastore helper test suite."""

import collections
import datetime
import os
import unittest

import httplib2
import pytz
from flexmock import flexmock
from google.protobuf.timestamp_pb2 import Timestamp
from oauth2client import client
from oauth2client import service_account

from gcloud_datastore import helper
from gcloud_datastore import protos
from gcloud_datastore.entity import Entity
from gcloud_datastore.helper import *
from gcloud_datastore.key import Key


class FakeEnvMixin(object):

  def fakeEnv(self, **env):
    flexmock(os).should_receive('getenv').replace_with(
        lambda name, default=None: env.get(name, default))


class DatastoreHelperTest(unittest.TestCase):

  def testPropertyValues(self):
    property_dict = collections.OrderedDict(
        a_string='a',
        a_blob=b'b',
        a_boolean=True,
        a_integer=1,
        a_double=1.0,
        a_null=None,
        a_timestamp_microseconds=datetime.datetime(2015, 3, 4, 5, 6, 7, 8),
        a_geo_point=GeoPoint(52.37, 4.88),
        a_key=Key('Foo', 1),
        a_entity=Entity(Key('Bar', 'bar'), x=1),
        many_integer=[1, 2, 3])
    entity = protos.Entity()
    for name, value in property_dict.items():
      set_property(entity.properties, name, value)
    d = dict((key, get_value(value))
             for key, value in entity.properties.items())
    self.maxDiff = None
    self.assertDictEqual(d, dict(property_dict))

  def testBoolIsNotInteger(self):
    value = protos.Value()
    set_value(value, True)
    self.assertEqual('boolean_value', value.WhichOneof('value_type'))
    set_value(value, 1)
    self.assertEqual('integer_value', value.WhichOneof('value_type'))

  def testStringAndBytes(self):
    value = protos.Value()
    set_value(value, 'a')
    self.assertEqual('string_value', value.WhichOneof('value_type'))
    set_value(value, b'a')
    self.assertEqual('blob_value', value.WhichOneof('value_type'))

  def testNullValue(self):
    value = protos.Value()
    set_value(value, None)
    self.assertEqual('null_value', value.WhichOneof('value_type'))
    self.assertIsNone(get_value(value))

  def testEmptyValues(self):
    v = protos.Value()
    self.assertEqual(None, get_value(v))

  def testEmptyList(self):
    v = protos.Value()
    set_value(v, [])
    self.assertEqual('array_value', v.WhichOneof('value_type'))
    self.assertEqual([], get_value(v))

  def testKeyValueIsFrozen(self):
    value = protos.Value()
    set_value(value, Key('Foo', 'foo', parent=Key('Bar', 2)))
    key = get_value(value)
    self.assertEqual([('Bar', 2), ('Foo', 'foo')], key.path)
    self.assertTrue(key.frozen)

  def testNestedEntityValue(self):
    inner = Entity(None, street='Main St')
    value = protos.Value()
    set_value(value, inner)
    self.assertFalse(value.entity_value.HasField('key'))
    self.assertEqual('Main St',
                     value.entity_value.properties['street'].string_value)
    self.assertEqual({'street': 'Main St'}, dict(get_value(value)))

  def testSetPropertyOverwrite(self):
    entity = protos.Entity()
    set_property(entity.properties, 'a', 1, exclude_from_indexes=True)
    set_property(entity.properties, 'a', 'a')
    self.assertEqual('a', get_value(entity.properties['a']))
    self.assertEqual(False, entity.properties['a'].exclude_from_indexes)

  def testIndexedPropagation_Literal(self):
    value = protos.Value()

    set_value(value, 'a', True)
    self.assertEqual(True, value.exclude_from_indexes)
    set_value(value, 'a', False)
    self.assertEqual(False, value.exclude_from_indexes)

  def testIndexedPropagation_List(self):
    value = protos.Value()
    set_value(value, ['a'])
    self.assertEqual(False, value.exclude_from_indexes)
    self.assertEqual(False, value.array_value.values[0].exclude_from_indexes)

    set_value(value, ['a'], True)
    self.assertEqual(False, value.exclude_from_indexes)
    self.assertEqual(True, value.array_value.values[0].exclude_from_indexes)

    set_value(value, ['a'], False)
    self.assertEqual(False, value.exclude_from_indexes)
    self.assertEqual(False, value.array_value.values[0].exclude_from_indexes)

  def testSetValueBadType(self):
    value = protos.Value()
    self.assertRaises(TypeError, set_value, value, object())
    self.assertRaises(TypeError, set_value, value, {'a': 1})

  def testSetPropertyIndexed(self):
    entity = protos.Entity()
    set_property(entity.properties, 'a', 1)
    self.assertEqual(False, entity.properties['a'].exclude_from_indexes)
    set_property(entity.properties, 'a', 1, exclude_from_indexes=True)
    self.assertEqual(True, entity.properties['a'].exclude_from_indexes)

  def testQuery(self):
    q = protos.Query()
    add_kinds(q, 'Foo')
    self.assertEqual('Foo', q.kind[0].name)
    add_property_orders(q, '-bar', 'foo')
    self.assertEqual(protos.PropertyOrder.DESCENDING,
                     q.order[0].direction)
    self.assertEqual('bar', q.order[0].property.name)
    self.assertEqual(protos.PropertyOrder.ASCENDING,
                     q.order[1].direction)
    self.assertEqual('foo', q.order[1].property.name)
    add_projection(q, '__key__', 'bar')
    self.assertEqual('__key__', q.projection[0].property.name)
    self.assertEqual('bar', q.projection[1].property.name)
    add_distinct_on(q, 'bar')
    self.assertEqual('bar', q.distinct_on[0].name)

  def testFilter(self):
    f = protos.Filter()
    set_composite_filter(
        f,
        protos.CompositeFilter.AND,
        set_property_filter(protos.Filter(),
                            'foo', protos.PropertyFilter.EQUAL, 'bar'),
        set_property_filter(protos.Filter(),
                            'hop', protos.PropertyFilter.GREATER_THAN, 2.0))
    cf = f.composite_filter
    pf = cf.filters[0].property_filter
    self.assertEqual('foo', pf.property.name)
    self.assertEqual('bar', pf.value.string_value)
    self.assertEqual(protos.PropertyFilter.EQUAL, pf.op)
    pf = cf.filters[1].property_filter
    self.assertEqual('hop', pf.property.name)
    self.assertEqual(2.0, pf.value.double_value)
    self.assertEqual(protos.PropertyFilter.GREATER_THAN, pf.op)
    self.assertEqual(protos.CompositeFilter.AND, cf.op)

  def testDatetimeTimezone(self):
    dt_secs = 10000000
    dt = datetime.datetime.fromtimestamp(dt_secs,
                                         pytz.timezone('US/Pacific'))
    # We should fail if the datetime has a timezone set.
    ts = Timestamp()
    self.assertRaises(TypeError, to_timestamp, dt, ts)
    dt = dt.astimezone(pytz.utc)
    # Even if the timezone is set to UTC, we should still fail since storing a
    # datetime with UTC will be read from Datastore as a naive datetime.
    self.assertRaises(TypeError, to_timestamp, dt, ts)

    dt = dt.replace(tzinfo=None)
    to_timestamp(dt, ts)
    self.assertEqual(dt_secs, ts.seconds)
    self.assertEqual(0, ts.nanos)

  def testMicrosTimestamp(self):
    ts = Timestamp()
    helper.micros_to_timestamp(1500000, ts)
    self.assertEqual(1, ts.seconds)
    self.assertEqual(500000000, ts.nanos)
    self.assertEqual(1500000, helper.micros_from_timestamp(ts))
    self.assertEqual(datetime.datetime(1970, 1, 1, 0, 0, 1, 500000),
                     from_timestamp(ts))


class EndpointTest(FakeEnvMixin, unittest.TestCase):

  def testEndpointWithHost(self):
    self.fakeEnv(DATASTORE_HOST='ignored')
    endpoint = get_project_endpoint_from_env(project_id='bar',
                                             host='a.b.c')
    self.assertEqual('https://a.b.c/v1/projects/bar',
                     endpoint)

  def testEndpointWithEmulatorHostAndHost(self):
    self.fakeEnv(DATASTORE_EMULATOR_HOST='localhost:1234')
    endpoint = get_project_endpoint_from_env(project_id='bar')
    self.assertEqual('http://localhost:1234/v1/projects/bar',
                     endpoint)

  def testEndpointWithEmulatorHost(self):
    self.fakeEnv(DATASTORE_EMULATOR_HOST='localhost:1234')
    endpoint = get_project_endpoint_from_env(project_id='bar',
                                             host='a.b.c')
    # DATASTORE_EMULATOR_HOST wins.
    self.assertEqual('http://localhost:1234/v1/projects/bar',
                     endpoint)

  def testEndpointWithEmulatorHostAndProject(self):
    self.fakeEnv(DATASTORE_PROJECT_ID='bar',
                 DATASTORE_EMULATOR_HOST='localhost:1234')
    endpoint = get_project_endpoint_from_env()
    self.assertEqual('http://localhost:1234/v1/projects/bar',
                     endpoint)

  def testEndpointWithProject(self):
    self.fakeEnv(DATASTORE_PROJECT_ID='bar')
    endpoint = get_project_endpoint_from_env()
    self.assertEqual('https://datastore.googleapis.com/v1/projects/bar',
                     endpoint)

  def testEndpointWithNoProjectId(self):
    self.fakeEnv()
    self.assertRaisesRegex(
        ValueError,
        'project_id was not provided.*',
        get_project_endpoint_from_env)

  def testEndpointWithUrlOverride(self):
    self.fakeEnv(DATASTORE_EMULATOR_HOST='localhost:1234', **{
        '__DATASTORE_URL_OVERRIDE': 'http://prom-qa/datastore/v1beta42'})
    endpoint = get_project_endpoint_from_env(project_id='bar')
    self.assertEqual('http://prom-qa/datastore/v1beta42/projects/bar',
                     endpoint)


class ProjectIdTest(FakeEnvMixin, unittest.TestCase):

  def testExplicitProjectWins(self):
    self.fakeEnv(DATASTORE_PROJECT_ID='from-env')
    flexmock(helper).should_receive('get_project_id_from_metadata').never()
    self.assertEqual('explicit', get_project_id('explicit'))

  def testEnvironmentOrder(self):
    self.fakeEnv(GCLOUD_PROJECT='gcloud', DATASTORE_DATASET='dataset',
                 GOOGLE_CLOUD_PROJECT='google-cloud')
    flexmock(helper).should_receive('get_project_id_from_metadata').never()
    self.assertEqual('dataset', get_project_id())

  def testEmptyEnvironmentValueSkipped(self):
    self.fakeEnv(DATASTORE_PROJECT_ID='', GOOGLE_CLOUD_PROJECT='google-cloud')
    self.assertEqual('google-cloud', get_project_id())

  def testMetadataFallback(self):
    self.fakeEnv()
    flexmock(helper).should_receive('get_project_id_from_metadata') \
        .and_return('from-metadata').once()
    self.assertEqual('from-metadata', get_project_id())

  def testNoProject(self):
    self.fakeEnv()
    flexmock(helper).should_receive('get_project_id_from_metadata') \
        .and_return(None).once()
    self.assertIsNone(get_project_id())

  def testMetadataServer(self):
    self.fakeEnv()
    http = flexmock()
    http.should_receive('request').with_args(
        'http://metadata.google.internal/computeMetadata/v1/project/'
        'project-id',
        method='GET', headers={'Metadata-Flavor': 'Google'}).and_return(
            (httplib2.Response({'status': 200}), b'my-project\n')).once()
    self.assertEqual('my-project', get_project_id_from_metadata(http))

  def testMetadataServerHostOverride(self):
    self.fakeEnv(GCE_METADATA_HOST='localhost:8989')
    http = flexmock()
    http.should_receive('request').with_args(
        'http://localhost:8989/computeMetadata/v1/project/project-id',
        method='GET', headers={'Metadata-Flavor': 'Google'}).and_return(
            (httplib2.Response({'status': 200}), b'my-project')).once()
    self.assertEqual('my-project', get_project_id_from_metadata(http))

  def testNoMetadataServer(self):
    self.fakeEnv()
    http = flexmock()
    http.should_receive('request').and_raise(
        httplib2.ServerNotFoundError('Unable to find the server'))
    self.assertIsNone(get_project_id_from_metadata(http))

  def testMetadataServerRefusesConnection(self):
    self.fakeEnv()
    http = flexmock()
    http.should_receive('request').and_raise(ConnectionRefusedError())
    self.assertIsNone(get_project_id_from_metadata(http))

  def testMetadataServerError(self):
    self.fakeEnv()
    http = flexmock()
    http.should_receive('request').and_return(
        (httplib2.Response({'status': 404}), b'not found'))
    self.assertIsNone(get_project_id_from_metadata(http))


class FakeCredentials(object):

  def __init__(self, scopes=None):
    self.scopes = scopes

  def create_scoped(self, scopes):
    return FakeCredentials(scopes)

  def authorize(self, http):
    return http


class CredentialsTest(FakeEnvMixin, unittest.TestCase):

  def testStubCredentials(self):
    self.fakeEnv(**{'__DATASTORE_USE_STUB_CREDENTIAL_FOR_TEST': 'true'})
    flexmock(client.GoogleCredentials).should_receive(
        'get_application_default').never()
    self.assertIsNone(get_credentials_from_env())

  def testEmulatorHasNoCredentials(self):
    self.fakeEnv(DATASTORE_EMULATOR_HOST='localhost:8080')
    flexmock(client.GoogleCredentials).should_receive(
        'get_application_default').never()
    self.assertIsNone(get_credentials_from_env())

  def testKeyfilePath(self):
    self.fakeEnv()
    credentials = FakeCredentials()
    flexmock(service_account.ServiceAccountCredentials).should_receive(
        'from_json_keyfile_name').with_args(
            '/path/to/keyfile.json', scopes=helper.SCOPE).and_return(
                credentials).once()
    self.assertIs(credentials,
                  get_credentials_from_env(keyfile='/path/to/keyfile.json'))

  def testKeyfileDict(self):
    self.fakeEnv()
    credentials = FakeCredentials()
    keyfile = {'type': 'service_account', 'client_email': 'a@b.c'}
    flexmock(service_account.ServiceAccountCredentials).should_receive(
        'from_json_keyfile_dict').with_args(
            keyfile, scopes=helper.SCOPE).and_return(credentials).once()
    self.assertIs(credentials, get_credentials_from_env(keyfile=keyfile))

  def testKeyfileFromEnvironment(self):
    self.fakeEnv(DATASTORE_KEYFILE='/env/keyfile.json')
    credentials = FakeCredentials()
    flexmock(service_account.ServiceAccountCredentials).should_receive(
        'from_json_keyfile_name').with_args(
            '/env/keyfile.json', scopes=helper.SCOPE).and_return(
                credentials).once()
    self.assertIs(credentials, get_credentials_from_env())

  def testKeyfileJsonFromEnvironment(self):
    self.fakeEnv(DATASTORE_KEYFILE_JSON='{"type": "service_account"}')
    credentials = FakeCredentials()
    flexmock(service_account.ServiceAccountCredentials).should_receive(
        'from_json_keyfile_dict').with_args(
            {'type': 'service_account'}, scopes=helper.SCOPE).and_return(
                credentials).once()
    self.assertIs(credentials, get_credentials_from_env())

  def testApplicationDefault(self):
    self.fakeEnv()
    flexmock(client.GoogleCredentials).should_receive(
        'get_application_default').and_return(FakeCredentials()).once()
    credentials = get_credentials_from_env()
    self.assertEqual(helper.SCOPE, credentials.scopes)

  def testNoCredentials(self):
    self.fakeEnv()
    flexmock(client.GoogleCredentials).should_receive(
        'get_application_default').and_raise(
            client.ApplicationDefaultCredentialsError('none')).once()
    self.assertRaises(client.ApplicationDefaultCredentialsError,
                      get_credentials_from_env)


if __name__ == '__main__':
  unittest.main()
