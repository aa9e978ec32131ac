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
"""Tests for entity.py."""

import datetime
import unittest

from gcloud_datastore import protos
from gcloud_datastore.entity import Entity
from gcloud_datastore.helper import GeoPoint
from gcloud_datastore.key import Key


class EntityTests(unittest.TestCase):

  def testProperties(self):
    task = Entity(Key('Task'), description='Learn Datastore')
    task['done'] = False
    self.assertEqual('Learn Datastore', task['description'])
    self.assertFalse(task['done'])
    self.assertEqual({'description': 'Learn Datastore', 'done': False},
                     task.properties)
    self.assertEqual(2, len(task))
    self.assertEqual({'description', 'done'}, set(task))
    self.assertIn('done', task)
    self.assertIsNone(task.get('priority'))
    del task['done']
    self.assertNotIn('done', task)
    self.assertRaises(KeyError, lambda: task['done'])

  def testKey(self):
    self.assertIsNone(Entity().key)
    task = Entity()
    task.key = Key('Task', 1)
    self.assertEqual(Key('Task', 1), task.key)
    self.assertRaises(TypeError, Entity, 'Task')
    with self.assertRaises(TypeError):
      task.key = ('Task', 1)

  def testEquality(self):
    self.assertEqual(Entity(Key('Task', 1), done=True),
                     Entity(Key('Task', 1), done=True))
    self.assertNotEqual(Entity(Key('Task', 1), done=True),
                        Entity(Key('Task', 2), done=True))
    self.assertNotEqual(Entity(Key('Task', 1), done=True),
                        Entity(Key('Task', 1), done=False))
    self.assertNotEqual(Entity(), {})

  def testExcludeFromIndexes(self):
    task = Entity(Key('Task'), description='Learn Datastore')
    self.assertFalse(task.is_excluded_from_indexes('description'))
    task.set_exclude_from_indexes('description')
    self.assertTrue(task.is_excluded_from_indexes('description'))
    task.set_exclude_from_indexes('description', False)
    self.assertFalse(task.is_excluded_from_indexes('description'))

  def testPersisted(self):
    task = Entity(Key('Task', 1))
    self.assertFalse(task.persisted())
    self.assertTrue(Entity.from_pb(task.to_pb()).persisted())

  def testToPb(self):
    task = Entity(Key('Task', 'sampleTask', dataset_id='my-project'))
    task['description'] = 'Learn Datastore'
    task['created'] = datetime.datetime(2015, 3, 4, 12, 30)
    task['percent_complete'] = 10.0
    task['done'] = False
    task['priority'] = 4
    task['tags'] = ['fun', 'programming']
    task['location'] = GeoPoint(37.4, -122.1)
    task['owner'] = None
    task.set_exclude_from_indexes('description')
    entity_proto = task.to_pb()
    self.assertEqual('sampleTask', entity_proto.key.path[0].name)
    self.assertEqual('my-project', entity_proto.key.partition_id.project_id)
    properties = entity_proto.properties
    self.assertEqual('Learn Datastore',
                     properties['description'].string_value)
    self.assertTrue(properties['description'].exclude_from_indexes)
    self.assertFalse(properties['done'].exclude_from_indexes)
    self.assertEqual(10.0, properties['percent_complete'].double_value)
    self.assertEqual('boolean_value',
                     properties['done'].WhichOneof('value_type'))
    self.assertEqual(4, properties['priority'].integer_value)
    self.assertEqual(['fun', 'programming'],
                     [v.string_value
                      for v in properties['tags'].array_value.values])
    self.assertEqual(37.4, properties['location'].geo_point_value.latitude)
    self.assertEqual('null_value',
                     properties['owner'].WhichOneof('value_type'))
    self.assertEqual(1425472200,
                     properties['created'].timestamp_value.seconds)

  def testToPbWithoutKey(self):
    entity_proto = Entity(done=True).to_pb()
    self.assertFalse(entity_proto.HasField('key'))
    self.assertTrue(entity_proto.properties['done'].boolean_value)

  def testToPbUnsupportedValue(self):
    self.assertRaises(TypeError, Entity(Key('Task'), bad=object()).to_pb)

  def testListExcludeFromIndexes(self):
    task = Entity(Key('Task'), tags=['fun', 'programming'], empty=[])
    task.set_exclude_from_indexes('tags')
    task.set_exclude_from_indexes('empty')
    properties = task.to_pb().properties
    self.assertFalse(properties['tags'].exclude_from_indexes)
    for value in properties['tags'].array_value.values:
      self.assertTrue(value.exclude_from_indexes)
    self.assertTrue(properties['empty'].HasField('array_value'))

  def testFromPb(self):
    entity_proto = protos.Entity()
    elem = entity_proto.key.path.add()
    elem.kind = 'Task'
    elem.id = 42
    entity_proto.properties['description'].string_value = 'Learn Datastore'
    entity_proto.properties['description'].exclude_from_indexes = True
    entity_proto.properties['priority'].integer_value = 4
    task = Entity.from_pb(entity_proto)
    self.assertEqual(Key('Task', 42), task.key)
    self.assertTrue(task.key.frozen)
    self.assertEqual({'description': 'Learn Datastore', 'priority': 4},
                     task.properties)
    self.assertTrue(task.is_excluded_from_indexes('description'))
    self.assertFalse(task.is_excluded_from_indexes('priority'))

  def testRoundTrip(self):
    owner = Entity(Key('User', 'heidi'), name='Heidi')
    task = Entity(Key('Task', 1, parent=Key('List', 'todos')),
                  description=b'\x00\x01',
                  owner=owner,
                  assignee=Key('User', 'heidi'),
                  tags=['fun', 1, None],
                  done=True)
    task.set_exclude_from_indexes('description')
    task.set_exclude_from_indexes('tags')
    decoded = Entity.from_pb(task.to_pb())
    self.assertEqual(task, decoded)
    self.assertIsInstance(decoded['owner'], Entity)
    self.assertEqual('Heidi', decoded['owner']['name'])
    self.assertTrue(decoded.is_excluded_from_indexes('description'))
    self.assertTrue(decoded.is_excluded_from_indexes('tags'))
    self.assertFalse(decoded.is_excluded_from_indexes('done'))

  def testRepr(self):
    self.assertEqual("Entity(Key('Task', 1), {'done': True})",
                     repr(Entity(Key('Task', 1), done=True)))


if __name__ == '__main__':
  unittest.main()
