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
"""gcloud_datastore helper.

Environment configuration (project, credentials, endpoint) and the
conversions between python values and Datastore protocol buffers.
"""

import calendar
import collections
import datetime
import json
import logging
import os

import httplib2
from google.protobuf import struct_pb2
from oauth2client import client
from oauth2client import service_account

from gcloud_datastore import entity as entity_module
from gcloud_datastore import key as key_module
from gcloud_datastore import protos

__all__ = [
    'GeoPoint',
    'get_credentials_from_env',
    'get_project_id',
    'get_project_id_from_metadata',
    'get_project_endpoint_from_env',
    'set_property',
    'set_value',
    'get_value',
    'add_kinds',
    'add_property_orders',
    'add_projection',
    'add_distinct_on',
    'set_property_filter',
    'set_composite_filter',
    'to_timestamp',
    'from_timestamp',
]

SCOPE = 'https://www.googleapis.com/auth/datastore'
GOOGLEAPIS_HOST = 'datastore.googleapis.com'
GOOGLEAPIS_URL = 'https://%s' % GOOGLEAPIS_HOST
API_VERSION = 'v1'

GeoPoint = collections.namedtuple('GeoPoint', ['latitude', 'longitude'])

# Value types for which their proto value is the user value type.
_NATIVE_VALUE_TYPES = frozenset(['string_value',
                                 'blob_value',
                                 'boolean_value',
                                 'integer_value',
                                 'double_value'])

_DATASTORE_PROJECT_ID_ENV = 'DATASTORE_PROJECT_ID'
_DATASTORE_EMULATOR_HOST_ENV = 'DATASTORE_EMULATOR_HOST'
_DATASTORE_KEYFILE_ENV = 'DATASTORE_KEYFILE'
_DATASTORE_KEYFILE_JSON_ENV = 'DATASTORE_KEYFILE_JSON'
_DATASTORE_URL_OVERRIDE_ENV = '__DATASTORE_URL_OVERRIDE'
_DATASTORE_USE_STUB_CREDENTIAL_FOR_TEST_ENV = (
    '__DATASTORE_USE_STUB_CREDENTIAL_FOR_TEST')
# Deprecated
_DATASTORE_HOST_ENV = 'DATASTORE_HOST'

# Checked in order after an explicit project id.
_PROJECT_ID_ENVS = (
    _DATASTORE_PROJECT_ID_ENV,
    'DATASTORE_DATASET',
    'DATASTORE_PROJECT',
    'GCLOUD_PROJECT',
    'GOOGLE_CLOUD_PROJECT',
)

_GCE_METADATA_HOST_ENV = 'GCE_METADATA_HOST'
_GCE_METADATA_HOST = 'metadata.google.internal'
_GCE_METADATA_TIMEOUT = 3


def get_credentials_from_env(keyfile=None, scope=SCOPE):
  """Get credentials from environment variables.

  Preference of credentials is:
  - No credentials if DATASTORE_EMULATOR_HOST is set.
  - Service account credentials from the given keyfile, or from the
  DATASTORE_KEYFILE (path) or DATASTORE_KEYFILE_JSON (contents)
  environment variables.
  - Google Application Default
  https://developers.google.com/identity/protocols/application-default-credentials

  Args:
    keyfile: path to a service account JSON key file, or the parsed key
        file contents as a dict.
    scope: the OAuth2 scope to request.

  Returns:
    credentials or None.

  Raises:
    oauth2client.client.ApplicationDefaultCredentialsError: if no
        credentials could be found.
  """
  if os.getenv(_DATASTORE_USE_STUB_CREDENTIAL_FOR_TEST_ENV):
    logging.info('connecting without credentials because %s is set.',
                 _DATASTORE_USE_STUB_CREDENTIAL_FOR_TEST_ENV)
    return None
  if os.getenv(_DATASTORE_EMULATOR_HOST_ENV):
    logging.info('connecting without credentials because %s is set.',
                 _DATASTORE_EMULATOR_HOST_ENV)
    return None
  if keyfile is None:
    keyfile = os.getenv(_DATASTORE_KEYFILE_ENV)
  if keyfile is None and os.getenv(_DATASTORE_KEYFILE_JSON_ENV):
    keyfile = json.loads(os.getenv(_DATASTORE_KEYFILE_JSON_ENV))
  if isinstance(keyfile, dict):
    logging.info('connecting using service account key data.')
    return service_account.ServiceAccountCredentials.from_json_keyfile_dict(
        keyfile, scopes=scope)
  if keyfile:
    logging.info('connecting using service account key file %s.', keyfile)
    return service_account.ServiceAccountCredentials.from_json_keyfile_name(
        keyfile, scopes=scope)
  try:
    credentials = client.GoogleCredentials.get_application_default()
    credentials = credentials.create_scoped(scope)
    logging.info('connecting using Google Application Default Credentials.')
    return credentials
  except client.ApplicationDefaultCredentialsError:
    logging.error('Unable to find any credentials to use. '
                  'If you are running locally, make sure to set the '
                  '%s environment variable.', _DATASTORE_EMULATOR_HOST_ENV)
    raise


def get_project_id(project_id=None):
  """Resolve the Cloud project to use.

  The first non-empty of: the given project_id, the DATASTORE_PROJECT_ID,
  DATASTORE_DATASET, DATASTORE_PROJECT, GCLOUD_PROJECT and
  GOOGLE_CLOUD_PROJECT environment variables, and the Compute Engine
  metadata server.

  Args:
    project_id: an explicit Cloud project.

  Returns:
    the project id, or None if it could not be determined.
  """
  if project_id:
    return project_id
  for env in _PROJECT_ID_ENVS:
    value = os.getenv(env)
    if value:
      return value
  return get_project_id_from_metadata()


def get_project_id_from_metadata(http=None):
  """Ask the Compute Engine metadata server for the current project.

  Args:
    http: an httplib2.Http to use, defaults to a new one with a short
        timeout.

  Returns:
    the project id, or None when not running on Compute Engine.
  """
  host = os.getenv(_GCE_METADATA_HOST_ENV) or _GCE_METADATA_HOST
  url = 'http://%s/computeMetadata/v1/project/project-id' % host
  http = http or httplib2.Http(timeout=_GCE_METADATA_TIMEOUT)
  try:
    response, content = http.request(
        url, method='GET', headers={'Metadata-Flavor': 'Google'})
  except (httplib2.HttpLib2Error, OSError) as e:
    logging.debug('no metadata server at %s: %s', host, e)
    return None
  if response.status != 200:
    logging.debug('metadata server at %s returned HTTP %s',
                  host, response.status)
    return None
  if isinstance(content, bytes):
    content = content.decode('utf-8')
  return content.strip() or None


def get_project_endpoint_from_env(project_id=None, host=None):
  """Get Datastore project endpoint from environment variables.

  Args:
    project_id: The Cloud project, defaults to the environment
        variable DATASTORE_PROJECT_ID.
    host: The Cloud Datastore API host to use.

  Returns:
    the endpoint to use, for example
    https://datastore.googleapis.com/v1/projects/my-project

  Raises:
    ValueError: if the wrong environment variable was set or a project_id was
        not provided.
  """
  project_id = project_id or os.getenv(_DATASTORE_PROJECT_ID_ENV)
  if not project_id:
    raise ValueError('project_id was not provided. Either pass it in '
                     'directly or set DATASTORE_PROJECT_ID.')
  # DATASTORE_HOST is deprecated.
  if os.getenv(_DATASTORE_HOST_ENV):
    logging.warning('Ignoring value of environment variable DATASTORE_HOST. '
                    'To point datastore to a host running locally, use the '
                    'environment variable DATASTORE_EMULATOR_HOST')

  url_override = os.getenv(_DATASTORE_URL_OVERRIDE_ENV)
  if url_override:
    return '%s/projects/%s' % (url_override, project_id)

  localhost = os.getenv(_DATASTORE_EMULATOR_HOST_ENV)
  if localhost:
    return ('http://%s/%s/projects/%s'
            % (localhost, API_VERSION, project_id))

  host = host or GOOGLEAPIS_HOST
  return 'https://%s/%s/projects/%s' % (host, API_VERSION, project_id)


def set_property(property_map, name, value, exclude_from_indexes=None):
  """Set property value in the given datastore.Entity properties map.

  Args:
    property_map: a string->datastore.Value protobuf map.
    name: name of the property.
    value: python object.
    exclude_from_indexes: if the value should be exclude from indexes. None
        leaves indexing as is (defaults to False).

  Usage:
    >>> set_property(entity_proto.properties, 'foo', 'a')

  Raises:
    TypeError: if the given value type is not supported.
  """
  set_value(property_map[name], value, exclude_from_indexes)


def set_value(value_proto, value, exclude_from_indexes=None):
  """Set the corresponding datastore.Value _value field for the given arg.

  Args:
    value_proto: datastore.Value proto message.
    value: python object. (str sets a string value, bytes a blob value,
        a Key a key value and an Entity an entity value).
    exclude_from_indexes: if the value should be exclude from indexes. None
        leaves indexing as is (defaults to False).

  Raises:
    TypeError: if the given value type is not supported.
  """
  value_proto.Clear()

  if isinstance(value, (list, tuple)) and not isinstance(value, GeoPoint):
    # Touch the array so an empty list still encodes as an array.
    value_proto.array_value.SetInParent()
    for sub_value in value:
      set_value(value_proto.array_value.values.add(), sub_value,
                exclude_from_indexes)
    return  # do not set indexed for a list property.

  if value is None:
    value_proto.null_value = struct_pb2.NULL_VALUE
  elif isinstance(value, str):
    value_proto.string_value = value
  elif isinstance(value, bytes):
    value_proto.blob_value = value
  elif isinstance(value, bool):
    value_proto.boolean_value = value
  elif isinstance(value, int):
    value_proto.integer_value = value
  elif isinstance(value, float):
    value_proto.double_value = value
  elif isinstance(value, datetime.datetime):
    to_timestamp(value, value_proto.timestamp_value)
  elif isinstance(value, GeoPoint):
    value_proto.geo_point_value.latitude = value.latitude
    value_proto.geo_point_value.longitude = value.longitude
  elif isinstance(value, key_module.Key):
    value_proto.key_value.CopyFrom(value.to_pb())
  elif isinstance(value, entity_module.Entity):
    value_proto.entity_value.CopyFrom(value.to_pb())
  else:
    raise TypeError('value type: %r not supported' % (value,))

  if exclude_from_indexes is not None:
    value_proto.exclude_from_indexes = exclude_from_indexes


def get_value(value_proto):
  """Gets the python object equivalent for the given value proto.

  Args:
    value_proto: datastore.Value proto message.

  Returns:
    the corresponding python object value. timestamps are converted to
    naive utc datetime, keys to Key and entities to Entity.
  """
  field = value_proto.WhichOneof('value_type')
  if field in _NATIVE_VALUE_TYPES:
    return getattr(value_proto, field)
  if field == 'timestamp_value':
    return from_timestamp(value_proto.timestamp_value)
  if field == 'geo_point_value':
    return GeoPoint(value_proto.geo_point_value.latitude,
                    value_proto.geo_point_value.longitude)
  if field == 'key_value':
    return key_module.Key.from_pb(value_proto.key_value)
  if field == 'entity_value':
    return entity_module.Entity.from_pb(value_proto.entity_value)
  if field == 'array_value':
    return [get_value(sub_value)
            for sub_value in value_proto.array_value.values]
  return None


def add_kinds(query_proto, *kinds):
  """Add kind constraints to the given datastore.Query proto message."""
  for kind in kinds:
    query_proto.kind.add().name = kind


def add_property_orders(query_proto, *orders):
  """Add ordering constraint for the given datastore.Query proto message.

  Args:
    query_proto: datastore.Query proto message.
    orders: list of propertype name string, default to ascending
    order and set descending if prefixed by '-'.

  Usage:
    >>> add_property_orders(query_proto, 'foo')  # sort by foo asc
    >>> add_property_orders(query_proto, '-bar')  # sort by bar desc
  """
  for order in orders:
    proto = query_proto.order.add()
    if order[0] == '-':
      order = order[1:]
      proto.direction = protos.PropertyOrder.DESCENDING
    else:
      proto.direction = protos.PropertyOrder.ASCENDING
    proto.property.name = order


def add_projection(query_proto, *projection):
  """Add projection properties to the given datatstore.Query proto message."""
  for p in projection:
    proto = query_proto.projection.add()
    proto.property.name = p


def add_distinct_on(query_proto, *names):
  """Add distinct on properties to the given datastore.Query proto message."""
  for name in names:
    query_proto.distinct_on.add().name = name


def set_property_filter(filter_proto, name, op, value):
  """Set property filter contraint in the given datastore.Filter proto message.

  Args:
    filter_proto: datastore.Filter proto message
    name: property name
    op: datastore.PropertyFilter.Operator
    value: property value

  Returns:
    the same datastore.Filter.

  Usage:
    >>> set_property_filter(filter_proto, 'foo',
    ...   datastore.PropertyFilter.EQUAL, 'a')  # WHERE 'foo' = 'a'
  """
  filter_proto.Clear()
  pf = filter_proto.property_filter
  pf.property.name = name
  pf.op = op
  set_value(pf.value, value)
  return filter_proto


def set_composite_filter(filter_proto, op, *filters):
  """Set composite filter contraint in the given datastore.Filter proto message.

  Args:
    filter_proto: datastore.Filter proto message
    op: datastore.CompositeFilter.Operator
    filters: vararg list of datastore.Filter

  Returns:
   the same datastore.Filter.

  Usage:
    >>> set_composite_filter(filter_proto, datastore.CompositeFilter.AND,
    ...   set_property_filter(datastore.Filter(), ...),
    ...   set_property_filter(datastore.Filter(), ...)) # WHERE ... AND ...
  """
  filter_proto.Clear()
  cf = filter_proto.composite_filter
  cf.op = op
  for f in filters:
    cf.filters.add().CopyFrom(f)
  return filter_proto


_EPOCH = datetime.datetime(1970, 1, 1)
_MICROS_PER_SECOND = 1000000
_NANOS_PER_MICRO = 1000


def micros_from_timestamp(timestamp):
  """Convert protobuf Timestamp to microseconds from utc epoch."""
  return (timestamp.seconds * _MICROS_PER_SECOND
          + timestamp.nanos // _NANOS_PER_MICRO)


def from_timestamp(timestamp):
  """Convert a protobuf Timestamp to datetime."""
  return _EPOCH + datetime.timedelta(
      microseconds=micros_from_timestamp(timestamp))


def micros_to_timestamp(micros, timestamp):
  """Convert microseconds from utc epoch to google.protobuf.timestamp.

  Args:
    micros: an int, number of microseconds since utc epoch.
    timestamp: a google.protobuf.timestamp.Timestamp to populate.
  """
  seconds, micro_remainder = divmod(micros, _MICROS_PER_SECOND)
  timestamp.seconds = seconds
  timestamp.nanos = micro_remainder * _NANOS_PER_MICRO


def to_timestamp(dt, timestamp):
  """Convert datetime to google.protobuf.Timestamp.

  Args:
    dt: a timezone naive datetime.
    timestamp: a google.protobuf.Timestamp to populate.

  Raises:
    TypeError: if a timezone aware datetime was provided.
  """
  if dt.tzinfo:
    # this is an "aware" datetime with an explicit timezone. Throw an error.
    raise TypeError('Cannot store a timezone aware datetime. '
                    'Convert to UTC and store the naive datetime.')
  timestamp.seconds = calendar.timegm(dt.timetuple())
  timestamp.nanos = dt.microsecond * _NANOS_PER_MICRO
