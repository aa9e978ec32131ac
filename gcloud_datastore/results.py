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
"""Result containers returned by Dataset lookups and queries."""

from gcloud_datastore import protos

__all__ = [
    'LookupResults',
    'QueryResults',
]


class LookupResults(list):
  """The entities found by a lookup.

  Attributes:
    deferred: Keys Datastore did not process in this call; look them up
        again to get their entities.
    missing: Entities (with only a key) for keys that do not exist.
  """

  def __init__(self, entities=(), deferred=(), missing=()):
    super(LookupResults, self).__init__(entities)
    self.deferred = list(deferred)
    self.missing = list(missing)


class QueryResults(list):
  """One batch of query results.

  Attributes:
    cursor: opaque bytes to pass to Query.start to resume after this batch.
    more_results: one of the MoreResultsType constants below.
  """

  NOT_FINISHED = protos.QueryResultBatch.NOT_FINISHED
  MORE_RESULTS_AFTER_LIMIT = protos.QueryResultBatch.MORE_RESULTS_AFTER_LIMIT
  MORE_RESULTS_AFTER_CURSOR = (
      protos.QueryResultBatch.MORE_RESULTS_AFTER_CURSOR)
  NO_MORE_RESULTS = protos.QueryResultBatch.NO_MORE_RESULTS

  def __init__(self, entities=(), cursor=None, more_results=None):
    super(QueryResults, self).__init__(entities)
    self.cursor = cursor
    self.more_results = more_results

  def not_finished(self):
    return self.more_results == self.NOT_FINISHED

  def more_after_limit(self):
    return self.more_results == self.MORE_RESULTS_AFTER_LIMIT

  def more_after_cursor(self):
    return self.more_results == self.MORE_RESULTS_AFTER_CURSOR

  def no_more(self):
    return self.more_results == self.NO_MORE_RESULTS
