"""
fauxapi 博客示例

展示基于 blog-api.yml 的常见用法：
- 创建记录（默认值、$userId、密码摘要）
- 校验失败的错误信息
- 请求参数查询与关系展开
- 多对多关联
- 级联删除
- 备份与恢复
"""

import json
import logging
import os
import sys
from pathlib import Path

# 添加父目录到路径
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fauxapi import Database, QueryFilter, QueryOptions

from _common import fresh_data_file

logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

CONFIG_PATH = Path(__file__).parent / 'blog-api.yml'


def show(title, value):
    print(f"\n{title}")
    print(json.dumps(value, indent=2, ensure_ascii=False))


print("=" * 70)
print("fauxapi 博客示例")
print("=" * 70)

db = Database(CONFIG_PATH, file_path=fresh_data_file('blog.json'))
users = db.resource('users').unwrap()
posts = db.resource('posts').unwrap()
comments = db.resource('comments').unwrap()
post_tags = db.resource('postTags').unwrap()

# ============================================================================
# 1. 创建记录
# ============================================================================

bob = users.create({'name': 'Bob', 'email': 'bob@example.com', 'password': 'hunter2'}).unwrap()
show("1. 新用户（role 默认值、时间戳、密码摘要）", bob)

post = posts.create({'title': 'Hello fauxapi', 'status': 'published'}, user_id=bob['id']).unwrap()
show("   新文章（userId 来自调用方）", post)

for body in ('First!', 'Nice post', 'Thanks'):
    comments.create({'postId': post['id'], 'body': body}).unwrap()
post_tags.create({'postId': post['id'], 'tagId': 1}).unwrap()
post_tags.create({'postId': post['id'], 'tagId': 2}).unwrap()

# ============================================================================
# 2. 校验失败
# ============================================================================

rejected = users.create({'name': 'X', 'email': 'bob@example.com', 'password': 'p', 'role': 'owner'})
show("2. 校验失败", rejected.error.to_dict())

# ============================================================================
# 3. 查询与展开
# ============================================================================

result = posts.query({
    'status': 'published',
    'sortBy': 'title.asc',
    'expand': 'author,comments,tags',
    'fields': 'id,title,userId',
})
show("3. 请求参数查询", result.unwrap())

recent = comments.find_all(QueryOptions(
    filters=[QueryFilter('body', 'contains', 'i', case_sensitive=False)],
    expand=['post.author'],
    page=1,
    per_page=2,
))
show("   嵌套展开 post.author", recent.unwrap())

# ============================================================================
# 4. 多对多
# ============================================================================

tags = db.resource('tags').unwrap()
show("4. python 标签下的文章", tags.find_related(1, 'posts').unwrap())

# ============================================================================
# 5. 级联删除、备份与恢复
# ============================================================================

backup_path = db.backup().unwrap()
posts.delete(post['id']).unwrap()
print(f"\n5. 删除文章后剩余评论数: {comments.count()}")

db.restore(backup_path).unwrap()
print(f"   从 {backup_path} 恢复后评论数: {db.resource('comments').unwrap().count()}")

show("   统计", db.stats())
db.close()
