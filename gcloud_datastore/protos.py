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
"""Datastore v1 protocol buffer messages.

The generated types are wrapped by proto-plus; everything in this library
works with the underlying protobuf classes, which `.pb()` hands back.
"""

from google.cloud.datastore_v1.types import datastore as _datastore
from google.cloud.datastore_v1.types import entity as _entity
from google.cloud.datastore_v1.types import query as _query

__all__ = [
    'LookupRequest',
    'LookupResponse',
    'RunQueryRequest',
    'RunQueryResponse',
    'BeginTransactionRequest',
    'BeginTransactionResponse',
    'CommitRequest',
    'CommitResponse',
    'RollbackRequest',
    'RollbackResponse',
    'AllocateIdsRequest',
    'AllocateIdsResponse',
    'Mutation',
    'MutationResult',
    'ReadOptions',
    'PartitionId',
    'Key',
    'ArrayValue',
    'Value',
    'Entity',
    'EntityResult',
    'Query',
    'KindExpression',
    'PropertyReference',
    'Projection',
    'PropertyOrder',
    'Filter',
    'CompositeFilter',
    'PropertyFilter',
    'QueryResultBatch',
]

LookupRequest = _datastore.LookupRequest.pb()
LookupResponse = _datastore.LookupResponse.pb()
RunQueryRequest = _datastore.RunQueryRequest.pb()
RunQueryResponse = _datastore.RunQueryResponse.pb()
BeginTransactionRequest = _datastore.BeginTransactionRequest.pb()
BeginTransactionResponse = _datastore.BeginTransactionResponse.pb()
CommitRequest = _datastore.CommitRequest.pb()
CommitResponse = _datastore.CommitResponse.pb()
RollbackRequest = _datastore.RollbackRequest.pb()
RollbackResponse = _datastore.RollbackResponse.pb()
AllocateIdsRequest = _datastore.AllocateIdsRequest.pb()
AllocateIdsResponse = _datastore.AllocateIdsResponse.pb()
Mutation = _datastore.Mutation.pb()
MutationResult = _datastore.MutationResult.pb()
ReadOptions = _datastore.ReadOptions.pb()

PartitionId = _entity.PartitionId.pb()
Key = _entity.Key.pb()
ArrayValue = _entity.ArrayValue.pb()
Value = _entity.Value.pb()
Entity = _entity.Entity.pb()

EntityResult = _query.EntityResult.pb()
Query = _query.Query.pb()
KindExpression = _query.KindExpression.pb()
PropertyReference = _query.PropertyReference.pb()
Projection = _query.Projection.pb()
PropertyOrder = _query.PropertyOrder.pb()
Filter = _query.Filter.pb()
CompositeFilter = _query.CompositeFilter.pb()
PropertyFilter = _query.PropertyFilter.pb()
QueryResultBatch = _query.QueryResultBatch.pb()
