"""
Store 测试

测试方法：
- 场景设计：读写、自动建集合、持久化
- 错误推断：返回值与内部状态共享引用

覆盖范围：
- ensure_collection 自动创建与并发读
- get_data / get_collection / get_record / query 返回深拷贝
- find_related 自动建集合与缺失源记录
- set_record / reset
- load / flush 与 auto_save
- stats
"""

import threading

from fauxapi import QueryFilter, QueryOptions, QuerySort, SerializationError, StoreOptions
from fauxapi.backends import MemoryBackend, get_backend
from fauxapi.common.options import MemoryBackendOptions
from fauxapi.core.store import Store


class TestCollections:
    """集合管理测试"""

    def test_ensure_collection(self):
        """引用不存在的集合时自动创建"""
        store = Store()
        assert store.ensure_collection('things') is True
        assert store.ensure_collection('things') is False
        assert store.has_collection('things')
        assert store.collection_names() == ['things']

    def test_get_data_during_collection_creation(self):
        """其他线程新建集合时 get_data 不报错"""
        store = Store()
        errors = []

        def create():
            for i in range(500):
                store.ensure_collection(f"c{i}")

        def read():
            try:
                for _ in range(200):
                    store.get_data()
                    store.collection_names()
            except RuntimeError as e:
                errors.append(e)

        threads = [threading.Thread(target=create), threading.Thread(target=read)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert errors == []
        assert len(store.get_data().value) == 500

    def test_get_collection_auto_creates(self):
        """get_collection 自动创建空集合"""
        store = Store()
        assert store.get_collection('ghosts').value == []
        assert store.has_collection('ghosts')

    def test_load_creates_configured_collections(self, blog_store):
        """load 后配置中的资源都有集合"""
        for name in ('users', 'profiles', 'posts', 'comments', 'tags', 'postTags'):
            assert blog_store.has_collection(name)


class TestReads:
    """读操作测试"""

    def test_get_record(self, blog_store):
        """按主键取记录"""
        assert blog_store.get_record('users', 1).value['name'] == 'Ann'

    def test_get_record_missing(self, blog_store):
        """记录不存在返回 Ok(None)"""
        result = blog_store.get_record('users', 99)
        assert result.ok
        assert result.value is None

    def test_get_record_strict_key(self, blog_store):
        """主键按严格相等匹配"""
        assert blog_store.get_record('users', '1').value is None
        assert blog_store.get_record('users', True).value is None

    def test_reads_are_copies(self, blog_store):
        """修改返回值不影响存储"""
        record = blog_store.get_record('users', 1).value
        record['name'] = 'Changed'
        blog_store.get_collection('users').value[0]['name'] = 'Changed'
        blog_store.get_data().value['users'].clear()
        assert blog_store.get_record('users', 1).value['name'] == 'Ann'

    def test_get_data_single(self, blog_store):
        """get_data 指定集合"""
        assert len(blog_store.get_data('comments').value) == 3

    def test_query(self, blog_store):
        """查询管线"""
        result = blog_store.query('posts', QueryOptions(
            filters=[QueryFilter('status', 'eq', 'draft')],
            sort=[QuerySort('title', 'desc')],
        ))
        assert [r['id'] for r in result.value] == [12, 11]

    def test_projection_primary_key_policy(self, blog_config):
        """投影是否保留主键由选项决定"""
        options = QueryOptions(fields=['name'])

        plain = Store(blog_config)
        plain.load()
        assert plain.query('users', options).value[0] == {'name': 'Ann'}

        keep = Store(blog_config, options=StoreOptions(projection_includes_primary_key=True))
        keep.load()
        assert keep.query('users', options).value[0] == {'id': 1, 'name': 'Ann'}


class TestFindRelated:
    """Store.find_related 测试"""

    def test_related_records(self, blog_store):
        """按外键查找"""
        result = blog_store.find_related('posts', 10, 'comments', 'postId')
        assert [r['id'] for r in result.value] == [100, 101]

    def test_with_options(self, blog_store):
        """查询选项作用于关联记录"""
        options = QueryOptions(filters=[QueryFilter('body', 'startsWith', 'T')])
        result = blog_store.find_related('posts', 10, 'comments', 'postId', options)
        assert [r['id'] for r in result.value] == [101]

    def test_missing_source_record(self, blog_store):
        """源记录不存在返回空列表"""
        assert blog_store.find_related('posts', 999, 'comments', 'postId').value == []

    def test_missing_collections_created(self):
        """源集合或目标集合不存在时自动创建"""
        store = Store()
        assert store.find_related('a', 1, 'b', 'aId').value == []
        assert store.has_collection('a')
        assert store.has_collection('b')


class TestWrites:
    """写操作测试"""

    def test_set_record_insert_and_replace(self):
        """set_record 插入或覆盖"""
        store = Store()
        created = store.set_record('notes', {'text': 'a'}).value
        assert created['id'] == 1
        store.set_record('notes', {'id': 1, 'text': 'b'})
        assert store.get_collection('notes').value == [{'id': 1, 'text': 'b'}]

    def test_writes_replace_collection_list(self, blog_store):
        """写操作替换集合列表，已取得的视图不受影响"""
        view = blog_store.records_view('users')
        blog_store.append_record('users', {'id': 3, 'name': 'Cy'})
        assert len(view) == 2
        assert len(blog_store.records_view('users')) == 3

    def test_remove_records(self, blog_store):
        """按条件删除"""
        removed = blog_store.remove_records('comments', lambda r: r['postId'] == 10)
        assert removed == 2
        assert [r['id'] for r in blog_store.get_collection('comments').value] == [102]

    def test_reset(self, blog_store):
        """reset 替换全部状态"""
        data = {'users': [{'id': 9}]}
        blog_store.reset(data)
        data['users'].append({'id': 10})
        assert blog_store.get_data().value == {'users': [{'id': 9}]}


class TestPersistence:
    """持久化测试"""

    def test_load_seeds_backend(self, blog_config):
        """后端没有数据时写入初始数据"""
        backend = MemoryBackend(None, MemoryBackendOptions())
        store = Store(blog_config, backend)
        assert store.load().ok
        assert backend.exists()
        assert backend.load()['users'][0]['name'] == 'Ann'

    def test_load_existing_backend_data(self, blog_config):
        """后端已有数据时优先加载"""
        backend = MemoryBackend(None, MemoryBackendOptions())
        backend.save({'users': [{'id': 42, 'name': 'Zed'}]})
        store = Store(blog_config, backend)
        store.load()
        assert store.get_collection('users').value == [{'id': 42, 'name': 'Zed'}]
        assert store.has_collection('posts')

    def test_auto_save(self, blog_config, temp_file):
        """auto_save 时每次写入后落盘"""
        store = Store(blog_config, get_backend('json', temp_file))
        store.load()
        store.set_record('users', {'id': 3, 'name': 'Cy'})
        reloaded = Store(blog_config, get_backend('json', temp_file))
        reloaded.load()
        assert reloaded.get_record('users', 3).value == {'id': 3, 'name': 'Cy'}

    def test_manual_flush(self, blog_config):
        """关闭 auto_save 时需要手动 flush"""
        backend = MemoryBackend(None, MemoryBackendOptions())
        store = Store(blog_config, backend, StoreOptions(auto_save=False))
        store.load()
        store.set_record('users', {'id': 3, 'name': 'Cy'})
        assert len(backend.load()['users']) == 2
        assert store.dirty
        assert store.flush().value is True
        assert len(backend.load()['users']) == 3
        assert store.flush().value is False

    def test_flush_failure_is_err(self, blog_config):
        """落盘失败返回 Err(SerializationError)"""

        class BrokenBackend(MemoryBackend):
            def save(self, data):
                raise SerializationError('disk full')

        store = Store(blog_config, BrokenBackend(None, MemoryBackendOptions()))
        result = store.load()
        assert not result.ok
        assert isinstance(result.error, SerializationError)

    def test_failed_flush_rolls_back(self, blog_config):
        """set_record / reset 落盘失败时恢复原状态"""

        class FlakyBackend(MemoryBackend):
            fail = False

            def save(self, data):
                if self.fail:
                    raise SerializationError('disk full')
                super().save(data)

        backend = FlakyBackend(None, MemoryBackendOptions())
        store = Store(blog_config, backend)
        store.load().unwrap()
        backend.fail = True

        assert not store.set_record('users', {'id': 3, 'name': 'Cy'}).ok
        assert store.get_record('users', 3).value is None
        assert not store.reset({}).ok
        assert len(store.get_collection('users').value) == 2

    def test_snapshot_and_rollback(self, blog_store):
        """快照保存集合引用，rollback 恢复"""
        before = blog_store.snapshot()
        blog_store.remove_records('tags', lambda r: True)
        blog_store.ensure_collection('extra')
        blog_store.rollback(before)
        assert len(blog_store.get_collection('tags').value) == 3
        assert not blog_store.has_collection('extra')

    def test_stats(self, blog_store):
        """统计各集合记录数"""
        stats = blog_store.stats()
        assert stats['collections']['comments']['count'] == 3
        assert stats['collections']['users']['last_modified'] is not None
        assert stats['total_records'] == 2 + 1 + 3 + 3 + 3 + 3
